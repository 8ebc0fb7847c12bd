"""
Datalog header to canonical channel mapping
"""

import logging
from typing import Collection, Optional, Sequence

from .config import ChannelAliasTable, load_channel_aliases
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

REQUIRED_CHANNELS = ('rpm', 'load')
AIRFLOW_CHANNELS = ('maf',)
PRESSURE_CHANNELS = ('boost', 'map_kpa')

# Most specific vocabularies claim their header first so that generic aliases
# such as "boost" or "map" cannot steal "Boost Air Temp." or "MAP (kPa)".
RESOLUTION_ORDER = (
    'map_kpa', 'intake_temp', 'dam', 'af_learn', 'af_correction', 'knock',
    'afr', 'throttle', 'maf', 'boost', 'rpm', 'load',
)


def resolve_channel(headers: Sequence[str], channel: str, platform: Optional[str] = None,
                    exclude: Collection[str] = (),
                    alias_table: Optional[ChannelAliasTable] = None) -> Optional[str]:
    """
    Find the header for a canonical channel

    Aliases are tried in priority order; for each alias the headers are
    scanned left to right and the first one containing it wins.

    Args:
        headers: Datalog header row
        channel: Canonical channel name, e.g. 'rpm'
        platform: Optional platform whose alias overlay takes precedence
        exclude: Headers already claimed by other channels
        alias_table: Alias table (bundled table if omitted)

    Returns:
        Matching header, or None if no alias matches
    """
    table = alias_table or load_channel_aliases()
    lowered = [(header, header.lower()) for header in headers if header not in exclude]
    for alias in table.aliases_for(channel, platform):
        for header, header_lower in lowered:
            if alias in header_lower:
                return header
    return None


def require_channel(headers: Sequence[str], channel: str, platform: Optional[str] = None,
                    exclude: Collection[str] = (),
                    alias_table: Optional[ChannelAliasTable] = None) -> str:
    """Like resolve_channel, but raise ConfigurationError when nothing matches"""
    table = alias_table or load_channel_aliases()
    header = resolve_channel(headers, channel, platform, exclude, table)
    if header is None:
        aliases = table.aliases_for(channel, platform)
        raise ConfigurationError(
            f"Could not find required column for '{channel}'. "
            f"Searched for: {', '.join(aliases)}. "
            f"Available columns: {', '.join(headers)}",
            channel=channel, aliases=aliases, available_headers=headers,
        )
    return header


class ChannelMap(dict):
    """Canonical channel -> header (None when the channel is unavailable)"""

    def has(self, channel: str) -> bool:
        return self.get(channel) is not None

    @property
    def has_airflow(self) -> bool:
        return any(self.has(c) for c in AIRFLOW_CHANNELS)

    @property
    def has_pressure(self) -> bool:
        return any(self.has(c) for c in PRESSURE_CHANNELS)


class ChannelResolver:
    """Resolves every canonical channel for one datalog header row"""

    def __init__(self, headers: Sequence[str], platform: Optional[str] = None,
                 alias_table: Optional[ChannelAliasTable] = None):
        self.headers = tuple(headers)
        self.platform = platform
        self.alias_table = alias_table or load_channel_aliases()

    def resolve(self) -> ChannelMap:
        """
        Map all known channels to headers

        Returns:
            ChannelMap with an entry for every channel in the alias table

        Raises:
            ConfigurationError: rpm/load missing, or neither airflow nor
                pressure sensors present
        """
        claimed = set()
        mapping = ChannelMap()
        order = list(RESOLUTION_ORDER) + [c for c in self.alias_table.channels if c not in RESOLUTION_ORDER]

        for channel in order:
            if channel in REQUIRED_CHANNELS:
                header = require_channel(self.headers, channel, self.platform, claimed, self.alias_table)
            else:
                header = resolve_channel(self.headers, channel, self.platform, claimed, self.alias_table)
            mapping[channel] = header
            if header is not None:
                claimed.add(header)

        if not mapping.has_airflow and not mapping.has_pressure:
            searched = [alias for c in AIRFLOW_CHANNELS + PRESSURE_CHANNELS
                        for alias in self.alias_table.aliases_for(c, self.platform)]
            raise ConfigurationError(
                "Datalog must contain either MAF sensor data (for MAF-based calculation) "
                "or Boost/MAP sensor data (for MAP-based calculation). "
                f"Searched for: {', '.join(searched)}. "
                f"Available columns: {', '.join(self.headers)}",
                channel='maf', aliases=searched, available_headers=self.headers,
            )

        logger.info("Column mapping - RPM: %s, Load: %s", mapping['rpm'], mapping['load'])
        logger.info("  Primary sensors - MAF: %s, Boost: %s, MAP(kPa): %s",
                    mapping.get('maf') or 'Not found', mapping.get('boost') or 'Not found',
                    mapping.get('map_kpa') or 'Not found')
        logger.info("  Optional - AFR: %s, Intake Temp: %s, Knock: %s",
                    mapping.get('afr') or 'Not found', mapping.get('intake_temp') or 'Not found',
                    mapping.get('knock') or 'Not found')
        return mapping
