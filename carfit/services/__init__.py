"""Service layer: billing lifecycle, plan requests and admin read models."""
