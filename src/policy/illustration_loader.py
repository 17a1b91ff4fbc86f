"""Load policy illustrations from files, extraction output or the bundled sample.

Illustrations arrive in several shapes: a structured document with
policy_level_information and annual_policy_data, a bare list of annual rows,
or model output text where the JSON sits inside a ```json fence.
"""

import json
import logging
import os
import re
from typing import Any, List

from model.PolicyIllustration import PolicyIllustration, PolicyIllustrationRecord, PolicyLevelInformation

logger = logging.getLogger(__name__)


SAMPLE_ILLUSTRATION_PATH = os.path.normpath(
    os.path.join(os.path.dirname(__file__), '../../reference', 'sample-policy-illustration.json')
)

_JSON_FENCE = re.compile(r"```json\s*([\s\S]*?)\s*```")
_PLAIN_FENCE = re.compile(r"```\s*([\s\S]*?)\s*```")


def extract_json_text(text: str) -> str:
    """Return the JSON payload of text, unwrapping a markdown code fence if present."""
    match = _JSON_FENCE.search(text) or _PLAIN_FENCE.search(text)
    if match:
        return match.group(1)
    return text.strip()


def parse_illustration(data: Any, index: int = 0) -> PolicyIllustration:
    """Parse any supported illustration shape.

    Args:
        data: Structured dict, list of annual rows, JSON text (optionally
              fenced) or an extraction response with candidates/content/parts
        index: Insured's position in the household, used for default names

    Returns:
        The parsed PolicyIllustration

    Raises:
        ValueError: If the data cannot be interpreted as an illustration
    """
    if isinstance(data, str):
        try:
            data = json.loads(extract_json_text(data))
        except json.JSONDecodeError as e:
            raise ValueError(f"Illustration text is not valid JSON: {e}") from e

    if isinstance(data, dict) and 'candidates' in data:
        try:
            text = data['candidates'][0]['content']['parts'][0]['text']
        except (KeyError, IndexError, TypeError) as e:
            raise ValueError("Extraction response does not contain any text parts") from e
        return parse_illustration(text, index)

    try:
        if isinstance(data, dict) and 'annual_policy_data' in data:
            illustration = PolicyIllustration.from_dict(data)
        elif isinstance(data, list):
            illustration = _from_rows(data, index)
        else:
            raise ValueError("Unrecognized illustration format")
    except (KeyError, TypeError) as e:
        raise ValueError(f"Illustration row is missing required data: {e}") from e

    if not illustration.annual_policy_data:
        raise ValueError("Illustration contains no annual policy data")

    logger.debug(
        "Parsed illustration '%s' with %d rows",
        illustration.policy_level_information.product_name,
        len(illustration.annual_policy_data),
    )
    return illustration


def _from_rows(rows: List[dict], index: int) -> PolicyIllustration:
    """Build an illustration from bare annual rows, deriving the level info from the first row."""
    records = sorted((PolicyIllustrationRecord.from_dict(row) for row in rows), key=lambda r: r.policy_year)
    first = min(rows, key=lambda r: r['policy_year']) if rows else {}
    issue_age = None
    if records and records[0].insured_age:
        issue_age = records[0].insured_age - records[0].policy_year + 1
    level = PolicyLevelInformation(
        insured_person_name=f"Person {index + 1}",
        insured_person_age=issue_age,
        insured_person_gender="Male" if index == 0 else "Female",
        product_name="Unknown Policy Type",
        initial_premium=float(first.get('annual_premium') or 0),
        initial_death_benefit=float(first.get('death_benefit') or 0),
    )
    return PolicyIllustration(policy_level_information=level, annual_policy_data=records)


def load_illustration(path: str, index: int = 0) -> PolicyIllustration:
    """Read and parse an illustration file (.json or extraction text)."""
    if not os.path.exists(path):
        raise FileNotFoundError(f"Policy illustration not found: {path}")
    with open(path, 'r') as f:
        return parse_illustration(f.read(), index)


def load_sample_illustrations(path: str = SAMPLE_ILLUSTRATION_PATH) -> List[PolicyIllustration]:
    """Load the bundled sample illustrations, one per insured."""
    with open(path, 'r') as f:
        data = json.load(f)
    return [parse_illustration(item, i) for i, item in enumerate(data)]
