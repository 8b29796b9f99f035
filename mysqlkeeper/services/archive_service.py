"""
Servicio para empaquetar los archivos SQL generados en un ZIP
"""
import shutil
import time
import zipfile
from pathlib import Path
from typing import Callable, Optional, Sequence, Tuple

from ..exceptions import ArchiveError, BackupIOError
from ..logger import LoggerService

# Permisos Unix fijos de cada miembro (archivo regular 0755)
MEMBER_PERMISSIONS = 0o755
COMPRESSION = zipfile.ZIP_DEFLATED


class ArchiveService:
    """Crea el archivo comprimido final de un backup"""

    def __init__(self):
        self.logger = LoggerService.get_logger("ArchiveService")

    def create_archive(self, output_path: Path, members: Sequence[Tuple[str, Path]],
                       on_member: Optional[Callable[[int, str], None]] = None) -> Path:
        """
        Empaqueta los archivos indicados en un único ZIP

        Args:
            output_path: Ruta del ZIP a crear
            members: Pares (nombre dentro del ZIP, archivo de origen), en orden
            on_member: Callback opcional llamado antes de escribir cada miembro
                       con (índice, nombre)

        Returns:
            Ruta del archivo creado
        """
        output_path = Path(output_path)
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise BackupIOError(f"No se pudo crear el directorio de salida {output_path.parent}: {e}") from e

        try:
            with zipfile.ZipFile(output_path, 'w', compression=COMPRESSION) as zipf:
                for index, (arcname, source) in enumerate(members):
                    if on_member:
                        on_member(index, arcname)
                    self._write_member(zipf, arcname, Path(source))
        except (OSError, zipfile.BadZipFile, zipfile.LargeZipFile) as e:
            raise ArchiveError(f"Error creando el archivo {output_path.name}: {e}") from e

        size_mb = output_path.stat().st_size / (1024 * 1024)
        self.logger.info(f"Archivo creado: {output_path.name} ({len(members)} miembro(s), {size_mb:.2f} MB)")
        return output_path

    @staticmethod
    def _write_member(zipf: zipfile.ZipFile, arcname: str, source: Path):
        stat = source.stat()
        info = zipfile.ZipInfo(arcname, date_time=time.localtime(stat.st_mtime)[:6])
        # file_size decide si el miembro necesita extensiones ZIP64
        info.file_size = stat.st_size
        info.compress_type = COMPRESSION
        info.external_attr = (0o100000 | MEMBER_PERMISSIONS) << 16
        with open(source, 'rb') as src, zipf.open(info, 'w') as dst:
            shutil.copyfileobj(src, dst, 1024 * 1024)
