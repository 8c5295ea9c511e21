# SPDX-License-Identifier: MIT

import logging
from pathlib import Path
from typing import Any, Optional, cast

from yaml import load

try:
    from yaml import CLoader as Loader
except ImportError:
    from yaml import Loader  # type: ignore[assignment]

from plangrid import configuration
from plangrid.model.plan import Plan
from plangrid.time import to_pendulum

logger = logging.getLogger(__name__)


class PlanRepository:
    """
    Read-only source of plans kept in a YAML file.

    The file holds either a list of plan mappings or a mapping with a
    `plans` list. Records that are not mappings are skipped; timestamps that
    cannot be parsed are left as None so the index drops them.
    """

    def __init__(self, path: Optional[Path] = None, tz: str = "local") -> None:
        self._path = path
        self.tz = tz
        self._plans: Optional[list[Plan]] = None

    @property
    def path(self) -> Path:
        return self._path or configuration.DATA_PLANS_PATH

    @property
    def plans(self) -> list[Plan]:
        if self._plans is None:
            self.__load_data()
        if self._plans is None:
            raise ValueError()
        return self._plans

    def __load_data(self) -> None:
        self._plans = []
        if not self.path.is_file():
            logger.debug("plans file %s does not exist", self.path)
            return

        raw_data = load(self.path.read_text(), Loader=Loader)
        if isinstance(raw_data, dict):
            raw_data = raw_data.get("plans")
        if raw_data is None:
            return
        if not isinstance(raw_data, list):
            raise ValueError(f"plans file {self.path} must contain a list of plans")

        for raw_plan in raw_data:
            if not isinstance(raw_plan, dict):
                logger.debug("skipping non-mapping plan record in %s", self.path)
                continue
            self._plans.append(self.__convert_plan_for_deserialization(raw_plan))

    def __convert_plan_for_deserialization(self, plan: dict[str, Any]) -> Plan:
        deserializable_plan = dict(plan)
        if "id" in deserializable_plan and deserializable_plan["id"] is not None:
            deserializable_plan["id"] = str(deserializable_plan["id"])
        deserializable_plan["start"] = to_pendulum(plan.get("start"), self.tz)
        deserializable_plan["end"] = to_pendulum(plan.get("end"), self.tz)
        return cast(Plan, deserializable_plan)

    def get_all_plans(self) -> list[Plan]:
        return list(self.plans)

    def reload(self) -> None:
        self._plans = None
