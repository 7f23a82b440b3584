"""
JSON file listing store.

Reads an export of the document store shaped as::

    {"providers": [{...}, ...], "listings": [{...}, ...]}

Records with ``"isActive": false`` (or ``"is_active": false``) are skipped.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

from listing_search.models import Listing, Provider
from .base import ListingStore, parse_records


logger = logging.getLogger(__name__)


def _is_active(record: Any) -> bool:
    if not isinstance(record, dict):
        return False
    return record.get('isActive', record.get('is_active', True)) is not False


class JsonFileListingStore(ListingStore):
    """Listing store reading a JSON export from disk.

    The file is re-read on every provider fetch so that a cache refresh
    picks up edits.

    Attributes:
        path: Path of the JSON export
    """

    def __init__(self, path: str):
        self.path = Path(path)
        self._records: Dict[str, List[Dict[str, Any]]] = {}

    def _load(self) -> Dict[str, List[Dict[str, Any]]]:
        with open(self.path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object in {self.path}")
        return {
            'providers': [r for r in data.get('providers', []) if _is_active(r)],
            'listings': [r for r in data.get('listings', []) if _is_active(r)],
        }

    async def fetch_all_active_providers(self) -> List[Provider]:
        self._records = self._load()
        logger.debug(f"Loaded {len(self._records['providers'])} providers from {self.path}")
        return parse_records(self._records['providers'], Provider.from_dict, "provider")

    async def fetch_all_active_listings_for(self, provider_id: str) -> List[Listing]:
        if not self._records:
            self._records = self._load()
        records = [
            r for r in self._records['listings']
            if str(r.get('providerId', r.get('provider_id'))) == provider_id
        ]
        return parse_records(records, Listing.from_dict, "listing")
