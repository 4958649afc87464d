"""
Модуль для загрузки и валидации конфигурации FontSpider.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, List, Pattern, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from font_spider import __version__

PatternT = Union[str, Pattern[str]]


class SpiderConfig(BaseModel):
    """Конфигурация одного запуска паука.

    Неизвестные ключи игнорируются; имена принимаются как в snake_case,
    так и в camelCase (``maxImportFiles``, ``resourceTimeoutMs``).
    """
    model_config = ConfigDict(
        extra="ignore",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    ignore: List[PatternT] = Field(
        default_factory=list, description="Шаблоны ресурсов, которые не загружаются."
    )
    map: List[Tuple[PatternT, str]] = Field(
        default_factory=list, description="Правила переписывания путей [шаблон, замена]."
    )
    max_import_files: int = Field(16, ge=1, description="Максимальная глубина цепочки @import.")
    unique: bool = Field(True, description="Удалять повторяющиеся символы.")
    sort: bool = Field(True, description="Сортировать символы по кодовой точке.")
    cache: bool = Field(True, description="Кэшировать загруженные ресурсы и разобранный CSS.")
    resource_timeout_ms: int = Field(8000, gt=0, description="Таймаут одного HTTP-запроса (мс).")
    retry_times: int = Field(0, ge=0, description="Число повторных попыток при 5xx/429.")
    user_agent: str = Field(
        f"FontSpider/{__version__}", min_length=1, description="Заголовок User-Agent."
    )
    silent: bool = Field(True, description="Не прерывать запуск из-за ошибки одного документа.")
    debug: bool = Field(False, description="Подробное логирование.")

    @field_validator("ignore", mode="before")
    def _wrap_single_pattern(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [v]
        return v

    @property
    def resource_timeout(self) -> float:
        """Таймаут в секундах, как его ожидает aiohttp."""
        return self.resource_timeout_ms / 1000.0


_DEFAULT_CFG = Path("font-spider.yaml")


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


def load_config(path: Union[str, Path, None]) -> SpiderConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект SpiderConfig.
    Без пути ищет font-spider.yaml в текущем каталоге, иначе берёт значения по умолчанию.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            return SpiderConfig()
        path_obj = _DEFAULT_CFG
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
        return SpiderConfig(**data)
    except ValidationError:
        raise
