import os
import re
import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional


def generate_request_id() -> str:
    """Gera ID curto para rastrear uma requisição nos logs"""
    return uuid.uuid4().hex[:8]


def unix_millis() -> int:
    return int(time.time() * 1000)


def utcnow() -> datetime:
    """Data/hora atual em UTC, sem tzinfo (compatível com SQLite)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def days_from_now(days: int, now: Optional[datetime] = None) -> datetime:
    return (now or utcnow()) + timedelta(days=days)


def sanitize_filename(filename: str) -> str:
    """Remove caracteres problemáticos do nome do arquivo"""
    # Descarta diretórios enviados pelo cliente
    filename = os.path.basename(filename.replace("\\", "/"))
    filename = re.sub(r'[^\w\s.-]', '', filename)
    filename = re.sub(r'[-\s]+', '_', filename)
    return filename.strip("._ ")


def build_filename_hint(original_name: Optional[str], millis: Optional[int] = None) -> str:
    """Nome único para o arquivo temporário: {timestamp}-{nome} ou upload-{timestamp}.jpg"""
    millis = unix_millis() if millis is None else millis
    name = sanitize_filename(original_name) if original_name else ""
    if name:
        return f"{millis}-{name}"
    return f"upload-{millis}.jpg"


def format_file_size(size_bytes: int) -> str:
    """Formata tamanho do arquivo em formato legível"""
    size = float(size_bytes)
    for unit in ['B', 'KB', 'MB', 'GB']:
        if size < 1024.0:
            return f"{size:.1f} {unit}"
        size /= 1024.0
    return f"{size:.1f} TB"
