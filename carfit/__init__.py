"""Operations backend for car-accessories installation businesses."""

__version__ = "0.1.0"
