"""Core models shared by the loader and the search engine."""
