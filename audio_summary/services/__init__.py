"""Pipeline stages and the external tools they drive."""
