"""Pipeline services: normalize, validate, apply, export."""
