"""Seed the predefined workflow template library."""

from __future__ import annotations

import logging

from workflow_engine.core.db import SessionContext, engine
from workflow_engine.models import Base
from workflow_engine.services.template_seed import seed_predefined_templates


logger = logging.getLogger("scripts.seed_templates")


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    Base.metadata.create_all(bind=engine)
    with SessionContext() as db:
        created = seed_predefined_templates(db)
    logger.info("Predefined templates seeded: %s new", created)


if __name__ == "__main__":
    main()
