"""Control core for a virtual radiotherapy linear accelerator: lifecycle, beam, dose, magnet, turntable and self-check."""

__version__ = "0.2.0"