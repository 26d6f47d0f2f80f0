"""Lane layout for rendering a day's schedule."""
