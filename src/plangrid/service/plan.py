# SPDX-License-Identifier: MIT

from pathlib import Path
from typing import Optional

from plangrid.configuration import Configuration
from plangrid.index.event_index import EventIndex
from plangrid.model.plan import Plan
from plangrid.repository.plan import PlanRepository


def load_plans(config: Configuration, path: Optional[Path] = None) -> list[Plan]:
    repository = PlanRepository(path, tz=config["timezone"])
    return repository.get_all_plans()


def build_index(plans: list[Plan], config: Configuration) -> EventIndex:
    index = EventIndex.from_configuration(config)
    index.add_plans(plans)
    return index
