"""Ward infusion monitoring: drop sensor, bedside monitor, ward server and bed records."""

__version__ = "0.1.0"