"""Группировка имён ассетов в семейства вариантов (`@2x` и обычный).

Принципы:
- SRP: только логика над именами, без загрузки текстур.
- Детерминизм: порядок внутри семейства и порядок семейств не зависят от
  порядка входа.
"""
from __future__ import annotations

from typing import Dict, Iterable, List

from icons_miner.models.icon_model import GroupKey, IconFamily, IconName


class VariantGrouper:
    def group(self, names: Iterable[str | IconName]) -> List[IconFamily]:
        """Разбивает имена на семейства без пересечений.

        Внутри семейства варианты сортируются по исходному имени по убыванию
        (ординально): `@` больше `.`, поэтому `Foo@2x.png` всегда идёт раньше
        `Foo.png`. Основной вариант - первый с `@2x`, иначе просто первый;
        второй - следующий по порядку, каким бы он ни был.

        Returns:
            Семейства, упорядоченные по имени основного варианта без учёта регистра.
        """
        buckets: Dict[GroupKey, Dict[str, IconName]] = {}
        for name in names:
            icon = name if isinstance(name, IconName) else IconName(name)
            buckets.setdefault(icon.group_key, {})[icon.raw] = icon

        families = [self._resolve(key, list(members.values())) for key, members in buckets.items()]
        # ordinal ignore-case compares upper-cased text
        families.sort(key=lambda family: (family.primary.raw.upper(), family.primary.raw))
        return families

    def _resolve(self, key: GroupKey, members: List[IconName]) -> IconFamily:
        ordered = tuple(sorted(members, key=lambda icon: icon.raw, reverse=True))
        primary = next((icon for icon in ordered if icon.is_retina), ordered[0])
        secondary = ordered[1] if len(ordered) > 1 else None
        return IconFamily(key=key, members=ordered, primary=primary, secondary=secondary)
