# gogtiles
# Builds Windows Start Menu tiles for the games in a GOG Galaxy 2.0 library.

__version__ = "1.0.0"
