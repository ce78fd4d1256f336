"""Геометрические утилиты: пространственный индекс."""
