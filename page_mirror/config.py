# === FILE: page_mirror/config.py ===
"""
Модуль для загрузки и валидации конфигурации PageMirror.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, List, Literal, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

OUTPUT_DIR_ENV = "OUTPUT_DIRECTORY"


def _default_output_dir() -> Path:
    """Корень вывода: переменная окружения OUTPUT_DIRECTORY или домашний каталог."""
    env = os.environ.get(OUTPUT_DIR_ENV)
    return Path(env).expanduser() if env else Path.home()


class MirrorConfig(BaseModel):
    """Конфигурация одного запуска зеркалирования."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    output_dir: Path = Field(default_factory=_default_output_dir, description="Корень для зеркал и снимков.")
    timeout: float = Field(30.0, gt=0, description="Таймаут навигации и HTTP-запроса (секунд).")
    user_agent: Optional[str] = Field(None, min_length=1, description="Заголовок User-Agent (None = браузерный).")
    headless: bool = Field(True, description="Запуск Chromium без окна.")
    wait_until: Literal["commit", "domcontentloaded", "load", "networkidle"] = Field(
        "networkidle", description="Событие, после которого страница считается загруженной."
    )
    settle_ms: int = Field(0, ge=0, description="Дополнительная пауза после загрузки (мс).")
    asset_concurrency: int = Field(8, ge=1, description="Одновременных загрузок ресурсов на страницу.")
    ignore_https_errors: bool = Field(False, description="Игнорировать ошибки TLS-сертификатов.")
    keep_query_variants: bool = Field(
        False, description="Добавлять хэш query-строки к имени файла ресурса."
    )
    browser_args: List[str] = Field(
        default_factory=lambda: ["--no-sandbox", "--disable-setuid-sandbox"],
        description="Аргументы командной строки Chromium.",
    )

    @field_validator("output_dir", mode="before")
    def _expand_output_dir(cls, v: Any) -> Any:
        if isinstance(v, (str, Path)):
            return Path(v).expanduser()
        return v

    @property
    def timeout_ms(self) -> float:
        return self.timeout * 1000


_DEFAULT_CFG = Path("configs/default.yaml")


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


def load_config(path: Union[str, Path, None]) -> MirrorConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект MirrorConfig.
    Без пути использует configs/default.yaml, а если его нет, значения по умолчанию.
    Явно указанный, но отсутствующий файл даёт FileNotFoundError.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            return MirrorConfig()
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

    return MirrorConfig(**data)


__all__ = ["MirrorConfig", "load_config", "OUTPUT_DIR_ENV"]
