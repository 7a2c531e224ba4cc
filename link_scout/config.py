# === FILE: link_scout/config.py ===
"""
Модуль для загрузки и валидации конфигурации LinkScout.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Tuple, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

__all__ = ["CheckerConfig", "load_config", "DEFAULT_CONFIG_PATH"]


class CheckerConfig(BaseModel):
    """Конфигурация одного запуска проверки ссылок."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    document: Path = Field(Path("README.md"), description="Markdown-документ для проверки.")
    results: Path = Field(Path("results.yaml"), description="Файл кеша результатов (YAML).")
    max_connections: int = Field(20, ge=1, description="Максимум одновременных запросов.")
    max_attempts: int = Field(5, ge=1, description="Число попыток на один URL.")
    timeout: float = Field(20.0, gt=0, description="Таймаут на один запрос (секунд).")
    user_agent: str = Field("curl/7.54.0", min_length=1, description="Заголовок User-Agent.")
    accept: str = Field("text/html, */*;q=0.8", description="Заголовок Accept.")
    verify_ssl: bool = Field(False, description="Проверять TLS-сертификаты.")
    schemes: Tuple[str, ...] = Field(
        ("http",), min_length=1, description="Префиксы URL, которые проверяются по сети."
    )

    @field_validator("schemes", mode="before")
    def _lower_schemes(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = [v]
        if isinstance(v, (list, tuple)):
            return tuple(str(s).strip().lower() for s in v if str(s).strip())
        return v

    def is_checkable(self, url: str) -> bool:
        """True, если URL начинается с одного из сетевых префиксов."""
        return url.lower().startswith(self.schemes)


DEFAULT_CONFIG_PATH = Path("link_scout.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Неправильный YAML в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень YAML должен быть mapping, получено {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Неправильный JSON в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень JSON должен быть mapping, получено {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None] = None) -> CheckerConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект CheckerConfig.
    Без пути используется link_scout.yaml из текущего каталога, а если его
    нет — значения по умолчанию. Явно указанный, но отсутствующий файл
    приводит к FileNotFoundError.
    """
    if path is None:
        if not DEFAULT_CONFIG_PATH.is_file():
            return CheckerConfig()
        path_obj = DEFAULT_CONFIG_PATH
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")

    try:
        return CheckerConfig(**data)
    except ValidationError:
        raise
