"""Wire models for both sides of the translation."""
