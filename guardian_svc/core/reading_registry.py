"""
Central reading registry - single source of truth for how readings are
coded, labelled and displayed.

This module provides:
- YAML-based configuration loading and validation
- Glucose timing labels and LOINC codes
- Blood pressure component codes and units
- Severity tier presentation per reading kind
- The drug catalog and interaction warnings

YAML access is encapsulated here - no other module should read
registry.yaml directly.

Usage:
    from core.reading_registry import get_timing, get_tier_status, find_drug

    get_timing(GlucoseTiming.FASTING).loinc   # "1585-8"
    get_tier_status(ReadingKind.GLUCOSE, SeverityTier.CRITICAL).label  # "Too high"
"""

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from models.analysis import SeverityTier, TierStatus
from models.medication import Drug
from models.reading import GlucoseTiming, ReadingKind

logger = logging.getLogger(__name__)


# =============================================================================
# DEFINITION DATACLASSES
# =============================================================================

@dataclass(frozen=True)
class TimingDefinition:
    """Label and LOINC code for one glucose timing."""
    timing: GlucoseTiming
    label: str
    loinc: str


@dataclass(frozen=True)
class ComponentDefinition:
    """
    Coding for one quantity of a reading.

    Attributes:
        name: Registry key (systolic, diastolic, pulse, glucose)
        loinc: LOINC code of the observation or component
        display: Human-readable code display
        unit: Unit shown to people
        ucum: UCUM code written into valueQuantity.code
        color: Hex color code for charts
    """
    name: str
    loinc: str
    display: str
    unit: str
    ucum: str
    color: str


@dataclass(frozen=True)
class Registry:
    timings: Dict[GlucoseTiming, TimingDefinition]
    bp_panel_loinc: str
    bp_panel_display: str
    bp_components: Dict[str, ComponentDefinition]
    glucose: ComponentDefinition
    tier_statuses: Dict[Tuple[ReadingKind, SeverityTier], TierStatus]
    drug_categories: Tuple[str, ...]
    drugs: Tuple[Drug, ...]
    interaction_warnings: Tuple[Tuple[str, str], ...]


# =============================================================================
# YAML CONFIGURATION LOADING & VALIDATION
# =============================================================================

def _get_config_path() -> Path:
    """Get the path to the registry configuration file."""
    return Path(__file__).parent / 'registry.yaml'


def _load_yaml_config() -> Dict[str, Any]:
    """
    Load and parse the YAML configuration file.

    Raises:
        FileNotFoundError: If registry.yaml is not found
        yaml.YAMLError: If YAML parsing fails
    """
    config_path = _get_config_path()
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f)
    except FileNotFoundError:
        logger.error("Registry config file not found", extra={'path': str(config_path)})
        raise
    except yaml.YAMLError as e:
        logger.error("Failed to parse registry config", extra={'path': str(config_path), 'error': str(e)})
        raise


def _parse_component(name: str, raw: Dict[str, Any]) -> ComponentDefinition:
    color = raw.get('color', '#546E7A')
    if not re.match(r'^#[0-9A-Fa-f]{6}$', color):
        raise ValueError(f"Component '{name}' has invalid color format: '{color}'")
    return ComponentDefinition(
        name=name,
        loinc=str(raw.get('loinc', '')),
        display=raw.get('display', name.title()),
        unit=raw['unit'],
        ucum=raw.get('ucum', raw['unit']),
        color=color,
    )


def _parse_tier_statuses(raw: Dict[str, Any]) -> Dict[Tuple[ReadingKind, SeverityTier], TierStatus]:
    statuses = {}
    for kind in ReadingKind:
        per_kind = raw.get(kind.value)
        if not per_kind:
            raise ValueError(f"severity_display is missing reading kind '{kind.value}'")
        for tier in SeverityTier:
            entry = per_kind.get(tier.value)
            if entry is None:
                raise ValueError(f"severity_display.{kind.value} is missing tier '{tier.value}'")
            statuses[(kind, tier)] = TierStatus(
                tier=tier,
                label=entry['label'],
                icon=entry.get('icon', ''),
                css_class=entry.get('css_class', tier.value),
            )
    return statuses


@lru_cache(maxsize=1)
def _load_registry() -> Registry:
    """
    Load and cache the complete registry from YAML.

    Cached so the YAML file is read exactly once per process.
    """
    config = _load_yaml_config()

    timings = {}
    for raw in config.get('timings', []):
        timing = GlucoseTiming(raw['code'])
        timings[timing] = TimingDefinition(timing=timing, label=raw['label'], loinc=str(raw['loinc']))
    missing = [t.value for t in GlucoseTiming if t not in timings]
    if missing:
        raise ValueError(f"Registry is missing glucose timings: {missing}")

    bp = config['blood_pressure']
    bp_components = {
        name: _parse_component(name, raw)
        for name, raw in bp['components'].items()
    }
    for required in ('systolic', 'diastolic', 'pulse'):
        if required not in bp_components:
            raise ValueError(f"Registry is missing blood pressure component '{required}'")

    drugs = tuple(
        Drug(
            id=raw['id'],
            category=raw['category'],
            name=raw['name'],
            side_effect=raw.get('side_effect', ''),
            interactions=tuple(raw.get('interactions') or ()),
        )
        for raw in config.get('drugs', [])
    )

    return Registry(
        timings=timings,
        bp_panel_loinc=str(bp['panel']['loinc']),
        bp_panel_display=bp['panel'].get('display', 'Blood pressure panel'),
        bp_components=bp_components,
        glucose=_parse_component('glucose', config['glucose']),
        tier_statuses=_parse_tier_statuses(config['severity_display']),
        drug_categories=tuple(config.get('drug_categories', [])),
        drugs=drugs,
        interaction_warnings=tuple((config.get('interaction_warnings') or {}).items()),
    )


# =============================================================================
# PUBLIC API
# =============================================================================

def get_timing(timing: GlucoseTiming) -> TimingDefinition:
    """Get label and LOINC code for a glucose timing."""
    return _load_registry().timings[timing]


def timing_label(timing: GlucoseTiming) -> str:
    return get_timing(timing).label


def glucose_loinc(timing: GlucoseTiming) -> str:
    return get_timing(timing).loinc


def glucose_loinc_codes() -> Tuple[str, ...]:
    """All LOINC codes a glucose observation may carry."""
    return tuple(sorted({definition.loinc for definition in _load_registry().timings.values()}))


def get_glucose_component() -> ComponentDefinition:
    return _load_registry().glucose


def get_bp_component(name: str) -> ComponentDefinition:
    """
    Get a blood pressure component by name.

    Raises:
        KeyError: If name is not systolic, diastolic or pulse.
    """
    return _load_registry().bp_components[name]


def get_bp_panel() -> Tuple[str, str]:
    """LOINC code and display of the blood pressure panel."""
    registry = _load_registry()
    return registry.bp_panel_loinc, registry.bp_panel_display


def get_tier_status(kind: ReadingKind, tier: SeverityTier) -> TierStatus:
    """Get the presentation hints of a tier for a reading kind."""
    return _load_registry().tier_statuses[(kind, tier)]


def list_drug_categories() -> List[str]:
    return list(_load_registry().drug_categories)


def list_drugs(category: Optional[str] = None) -> List[Drug]:
    """
    List catalog drugs.

    Args:
        category: Restrict to one category; None or "all" lists everything.
    """
    drugs = _load_registry().drugs
    if category in (None, "", "all"):
        return list(drugs)
    return [drug for drug in drugs if drug.category == category]


def find_drug(name: str) -> Optional[Drug]:
    """Exact-name catalog lookup (case-insensitive, surrounding spaces ignored)."""
    wanted = (name or "").strip().lower()
    for drug in _load_registry().drugs:
        if drug.name.lower() == wanted:
            return drug
    return None


def interaction_warning(drug: Drug) -> Optional[str]:
    """
    Get the interaction warning of a drug.

    Categories are checked in registry order; the first one the drug
    interacts with wins.
    """
    for category, message in _load_registry().interaction_warnings:
        if category in drug.interactions:
            return message
    return None
