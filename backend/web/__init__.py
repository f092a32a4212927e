"""AspireLink server-rendered web app."""
