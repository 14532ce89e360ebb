"""Render the declarations as Kotlin code."""
