"""Status glyphs and overlay fonts."""
