"""
Compact projector - shrinks a bundle so it fits in a QR code.

The projection keeps the patient, the most recent observations and the
report. The source bundle is never modified; a new Bundle is returned.
"""
import logging

from schemas.fhir import Bundle, DiagnosticReportResource, ObservationResource

logger = logging.getLogger(__name__)

QR_MAX_OBSERVATIONS = 3
PARTIAL_DATA_MARKER = " (QR code contains partial data)"


def project_for_qr(bundle: Bundle, max_observations: int = QR_MAX_OBSERVATIONS) -> Bundle:
    """
    Keep only the newest observations of a bundle.

    Observations are stored oldest first, so the newest are the tail. When
    anything is dropped, the report's ``result`` is pruned to the kept
    observations and the conclusion gets the partial-data marker. Bundles
    with ``max_observations`` observations or fewer come back unchanged.

    Args:
        bundle: Source bundle (left untouched).
        max_observations: Number of observations to keep.

    Returns:
        Bundle: The projected bundle, same id and createdAt.
    """
    observation_entries = bundle.observation_entries
    if len(observation_entries) <= max_observations:
        return bundle

    kept = observation_entries[-max_observations:]
    kept_ids = {id(entry) for entry in kept}
    kept_urls = {entry.full_url for entry in kept}

    entries = []
    for entry in bundle.entry:
        resource = entry.resource
        if isinstance(resource, ObservationResource):
            if id(entry) in kept_ids:
                entries.append(entry)
        elif isinstance(resource, DiagnosticReportResource):
            report = resource.model_copy(update={
                "result": [ref for ref in resource.result if ref.reference in kept_urls],
                "conclusion": resource.conclusion + PARTIAL_DATA_MARKER,
            })
            entries.append(entry.model_copy(update={"resource": report}))
        else:
            entries.append(entry)

    logger.debug(
        "Projected bundle for QR",
        extra={"bundle_id": bundle.id, "dropped": len(observation_entries) - len(kept)}
    )
    return bundle.model_copy(update={"entry": entries})
