"""Построение размерных цепочек: сбор, группировка, слияние, компоновка."""
