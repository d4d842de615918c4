"""Preview Medic - capture, diagnose and self-heal failing previews of generated code."""

__version__ = "0.1.0"
