"""
Реестр тиров пользователей.

Хранит тиры в `tier.json`, который поддерживает два формата записей:

- текущий: {"<user_id>": {"tier": "CEO", "createdAt": "...", "adpCreated": {}}}
- старый:  {"CEO": ["<user_id>", ...]}

Файл разбирается один раз при чтении в канонические `TierRecord`,
дальше по коду формат записи нигде не проверяется.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from dashboard.backend.database import JsonStore
from dashboard.backend.errors import StorageError, TierConflict, ValidationFailed

logger = logging.getLogger("dashboard.services.tiers")

TIER_FILE = "tier.json"


class Tier(str, enum.Enum):
    """Тиры в порядке возрастания прав."""

    RESELLER = "RESELLER"
    ADP = "ADP"
    OWN = "OWN"
    PT = "PT"
    TK = "TK"
    CEO = "CEO"


TIER_ORDER: tuple[Tier, ...] = tuple(Tier)


def tier_rank(tier: Optional[Tier]) -> int:
    """Позиция тира в фиксированной последовательности; -1 без тира."""
    if tier is None:
        return -1
    return TIER_ORDER.index(tier)


def parse_tier(value: Any) -> Optional[Tier]:
    """
    Приводит строку к `Tier`.

    Пустое значение означает "без тира". Неизвестное имя — ValidationFailed.
    """
    if value is None:
        return None
    if isinstance(value, Tier):
        return value
    name = str(value).strip().upper()
    if not name:
        return None
    try:
        return Tier(name)
    except ValueError:
        raise ValidationFailed("Неизвестный тир")


@dataclass
class TierRecord:
    """
    Каноническая запись о тире пользователя.

    Атрибуты:
        user_id: Telegram ID (строка)
        tier: тир пользователя
        created_at: время создания записи (ISO), None для старого формата
        metadata: прочие поля записи (например, adpCreated), сохраняются при обновлении
    """

    user_id: str
    tier: Tier
    created_at: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)
    legacy: bool = False


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class TierRegistry:
    """
    Чтение и изменение тиров пользователей.
    """

    def __init__(self, store: JsonStore) -> None:
        self.store = store

    # -------------------- разбор файла --------------------
    def _load_records(self, raw: Any) -> tuple[dict[str, TierRecord], set[str]]:
        """
        Разбирает содержимое tier.json.

        Возвращает (records, conflicts), где conflicts — ID пользователей,
        которые разные записи относят к разным тирам.
        """
        records: dict[str, TierRecord] = {}
        conflicts: set[str] = set()
        if not isinstance(raw, dict):
            logger.warning(f"{TIER_FILE}: ожидался объект, получено {type(raw).__name__}")
            return records, conflicts

        def claim(record: TierRecord) -> None:
            existing = records.get(record.user_id)
            if existing is None:
                records[record.user_id] = record
                return
            if existing.tier != record.tier:
                conflicts.add(record.user_id)
            elif existing.legacy and not record.legacy:
                # Одинаковый тир в обоих форматах: берём запись текущего формата
                records[record.user_id] = record

        for key, value in raw.items():
            if isinstance(value, dict):
                tier = self._safe_tier(value.get("tier"), key)
                if tier is None:
                    continue
                metadata = {k: v for k, v in value.items() if k not in ("tier", "createdAt")}
                claim(TierRecord(
                    user_id=str(key),
                    tier=tier,
                    created_at=value.get("createdAt"),
                    metadata=metadata,
                ))
            elif isinstance(value, list):
                tier = self._safe_tier(key, key)
                if tier is None:
                    continue
                for member in dict.fromkeys(str(m) for m in value):
                    claim(TierRecord(user_id=member, tier=tier, legacy=True))

        return records, conflicts

    @staticmethod
    def _safe_tier(value: Any, key: str) -> Optional[Tier]:
        try:
            tier = parse_tier(value)
        except ValidationFailed:
            logger.warning(f"{TIER_FILE}: неизвестный тир {value!r} в записи {key!r}, пропускаем")
            return None
        return tier

    def _read(self) -> tuple[dict[str, TierRecord], set[str]]:
        return self._load_records(self.store.read(TIER_FILE, {}))

    # -------------------- чтение --------------------
    def get_record(self, user_id: str) -> Optional[TierRecord]:
        """
        Возвращает запись пользователя или None.

        Raises:
            TierConflict: если пользователь числится в нескольких тирах
        """
        user_id = str(user_id)
        records, conflicts = self._read()
        if user_id in conflicts:
            logger.error(f"Пользователь {user_id} числится в нескольких тирах в {TIER_FILE}")
            raise TierConflict()
        return records.get(user_id)

    def get_tier(self, user_id: str) -> Optional[Tier]:
        record = self.get_record(user_id)
        return record.tier if record else None

    def all_records(self) -> dict[str, TierRecord]:
        """
        Все непротиворечивые записи.

        Конфликтующие пользователи в выдачу не попадают (и логируются).
        """
        records, conflicts = self._read()
        for user_id in sorted(conflicts):
            logger.error(f"Пользователь {user_id} числится в нескольких тирах в {TIER_FILE}")
            records.pop(user_id, None)
        return records

    def conflicted_users(self) -> set[str]:
        return self._read()[1]

    def grouped(self) -> dict[str, list[str]]:
        """ID пользователей по тирам, в порядке тиров."""
        groups: dict[str, list[str]] = {tier.value: [] for tier in TIER_ORDER}
        for user_id, record in self.all_records().items():
            groups[record.tier.value].append(user_id)
        return groups

    # -------------------- изменение --------------------
    def set_tier(self, user_id: str, tier: Optional[Tier | str]) -> Optional[TierRecord]:
        """
        Назначает тир пользователю.

        Пустой тир удаляет запись целиком. При обновлении существующей
        записи её метаданные сохраняются, новая запись получает время
        создания и пустую структуру adpCreated. Пользователь всегда
        удаляется из списков старого формата.
        """
        user_id = str(user_id)
        tier = parse_tier(tier)
        if tier is None:
            self.delete(user_id)
            return None

        def mutate(raw: dict) -> dict:
            _strip_legacy(raw, user_id)
            current = raw.get(user_id)
            if isinstance(current, dict):
                current["tier"] = tier.value
            else:
                current = {"tier": tier.value, "createdAt": _now_iso(), "adpCreated": {}}
            raw[user_id] = current
            return current

        entry = self.store.update(TIER_FILE, {}, lambda raw: mutate(_as_dict(raw)))
        logger.info(f"Тир пользователя {user_id} установлен: {tier.value}")
        return TierRecord(
            user_id=user_id,
            tier=tier,
            created_at=entry.get("createdAt"),
            metadata={k: v for k, v in entry.items() if k not in ("tier", "createdAt")},
        )

    def delete(self, user_id: str) -> bool:
        """Удаляет тир пользователя в обоих форматах. Возвращает True, если что-то удалено."""
        user_id = str(user_id)

        def mutate(raw: dict) -> bool:
            removed = _strip_legacy(raw, user_id)
            if isinstance(raw.get(user_id), dict):
                del raw[user_id]
                removed = True
            return removed

        removed = self.store.update(TIER_FILE, {}, lambda raw: mutate(_as_dict(raw)))
        if removed:
            logger.info(f"Тир пользователя {user_id} удалён")
        return removed


def _as_dict(raw: Any) -> dict:
    if not isinstance(raw, dict):
        logger.error(f"{TIER_FILE}: ожидался объект, запись отклонена")
        raise StorageError()
    return raw


def _strip_legacy(raw: dict, user_id: str) -> bool:
    """Убирает пользователя из списков старого формата."""
    removed = False
    for key, value in raw.items():
        if isinstance(value, list) and user_id in (str(m) for m in value):
            raw[key] = [m for m in value if str(m) != user_id]
            removed = True
    return removed
