"""
DraftStore — wizard 的唯一可变状态。

- get() 返回只读快照，调用方拿到的永远是「那一刻」的 draft
- 后退不清空；切换 serviceType 也不清空旧 variant 的字段（提交时才裁剪）
- 编辑模式下 frozen 字段拒绝修改，patch_many 要么全部写入要么一个都不写
"""

import logging
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional

from .exceptions import FieldFrozenError

logger = logging.getLogger(__name__)

Draft = Mapping[str, Any]


class DraftStore:

    def __init__(self, initial: Optional[Mapping[str, Any]] = None,
                 frozen_fields: Iterable[str] = ()):
        self._data: dict[str, Any] = dict(initial or {})
        self._frozen = frozenset(frozen_fields)

    @property
    def frozen_fields(self) -> frozenset[str]:
        return self._frozen

    def get(self) -> Draft:
        return MappingProxyType(dict(self._data))

    def patch(self, name: str, value: Any) -> None:
        self._check_writable(name, value)
        self._data[name] = value

    def patch_many(self, partial: Mapping[str, Any]) -> None:
        # 先全部检查，再写入：任何一个字段被拒绝，draft 保持原样
        for name, value in partial.items():
            self._check_writable(name, value)
        self._data.update(partial)

    def reset(self, initial: Optional[Mapping[str, Any]] = None) -> None:
        """用已有记录重新填充 draft（编辑模式加载数据）。不受 frozen 限制。"""
        self._data = dict(initial or {})

    def _check_writable(self, name: str, value: Any) -> None:
        if name not in self._frozen:
            return
        # 重复写入相同的值（UI 回显）不算修改
        if name in self._data and self._data[name] == value:
            return
        logger.warning("[Draft] 拒绝修改冻结字段 %s", name)
        raise FieldFrozenError(
            message=f"Field {name!r} cannot be changed in edit mode.",
            detail={"field": name},
        )

    def __contains__(self, name: str) -> bool:
        return name in self._data

    def __len__(self) -> int:
        return len(self._data)
