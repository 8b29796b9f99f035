"""
Factories del sistema
"""
