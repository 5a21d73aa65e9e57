"""
Base transformer class for sleep export samples.
Both payload-specific transformers inherit from this class.
"""

import logging
from typing import Dict, List, Optional, Union

import pandas as pd

from sleep_tracker.core.models.data_models import IngestionDiagnostic, NormalizedBatch, PayloadFormat

logger = logging.getLogger(__name__)


def to_records(data: Union[pd.DataFrame, List[Dict], Dict, None]) -> List:
    """
    Convert export samples to a list of plain records

    Args:
        data: Samples as DataFrame, list of dicts, or single dict

    Returns:
        List of records; DataFrame gaps become None
    """
    if data is None:
        return []
    if isinstance(data, dict):
        return [data]
    if isinstance(data, pd.DataFrame):
        cleaned = data.astype(object).where(pd.notnull(data), None)
        return cleaned.to_dict('records')
    if isinstance(data, (list, tuple)):
        return list(data)
    raise ValueError(f"Unsupported data type: {type(data)}")


class BaseSleepTransformer:
    """Base class for sleep sample transformers"""

    payload_format: Optional[PayloadFormat] = None

    def transform(self, data: Union[pd.DataFrame, List[Dict], Dict]) -> NormalizedBatch:
        """
        Transform export samples to the canonical batch shape

        Args:
            data: Samples as DataFrame, list of dicts, or single dict

        Returns:
            NormalizedBatch for this transformer's payload format
        """
        records = to_records(data)
        diagnostics: List[IngestionDiagnostic] = []

        try:
            batch = self._transform_records(records, diagnostics)
        except Exception as e:
            logger.error(f"Error transforming {self.payload_format.value} samples: {str(e)}")
            raise

        if diagnostics:
            logger.warning(
                f"Skipped {len(diagnostics)} of {len(records)} {self.payload_format.value} samples"
            )
        return batch

    def _transform_records(self, records: List, diagnostics: List[IngestionDiagnostic]) -> NormalizedBatch:
        """
        Format-specific transformation logic to be implemented by subclasses

        Invalid samples are appended to diagnostics and skipped, never raised.
        """
        raise NotImplementedError("Subclasses must implement _transform_records")

    @staticmethod
    def _reject(diagnostics: List[IngestionDiagnostic], reason: str, sample) -> None:
        logger.debug(f"Rejected sample: {reason}")
        diagnostics.append(IngestionDiagnostic(reason=reason, sample=sample))
