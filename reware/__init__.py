"""REWARE: server-driven web app for recycled-item listings, purchases and points."""
