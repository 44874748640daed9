"""Client library for NASA's Astronomy Picture of the Day."""
