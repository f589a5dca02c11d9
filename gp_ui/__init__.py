"""Command-line front end for gridprofile."""
