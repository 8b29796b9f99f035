"""
Motor de backup integrado: genera el dump fila a fila con mysql-connector
"""
