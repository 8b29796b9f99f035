"""
Servicios de la aplicación

Los módulos se importan directamente (services.backup_service, etc.):
las estrategias dependen de archive_service y progress.
"""
