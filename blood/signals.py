from __future__ import annotations

import logging

LOGGER = logging.getLogger(__name__)


def create_stock_rows(sender, **kwargs):
	"""Make sure every blood group has its ledger row once migrations ran."""

	from blood.services.stock import ensure_stock_rows

	created = ensure_stock_rows(using=kwargs.get("using"))
	if created:
		LOGGER.info("Created %s missing stock rows", created)
