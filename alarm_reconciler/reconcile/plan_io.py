"""
Line-oriented plan file format shared by the analyze and apply stages.

    REGION=<region>
    ALARM_SUFFIX=<suffix>
    ---CREATE---
    <type>|<resource>|<alarm>|<threshold>|<metric>
    ---DELETE---
    <alarm>
    ---SUMMARY---
    CREATE_COUNT=<n>
    DELETE_COUNT=<m>

Create lines may also use the legacy ``<resource>|<alarm>|<threshold>``
form, which means an SQS queue watched by the default SQS metric.
"""
import logging
from pathlib import Path
from typing import List, Optional, Union

from .models import CreateAction, DeleteAction, Plan
from .policy import ResourceType, format_threshold, metric_for
from ..core.exceptions import PlanFormatError, PlanNotFoundError


logger = logging.getLogger(__name__)

CREATE_MARKER = '---CREATE---'
DELETE_MARKER = '---DELETE---'
SUMMARY_MARKER = '---SUMMARY---'


def serialize_plan(plan: Plan) -> str:
    """Render a plan in the text format, newline terminated."""
    lines = [
        f"REGION={plan.region}",
        f"ALARM_SUFFIX={plan.alarm_suffix}",
        CREATE_MARKER,
    ]
    for action in plan.creates:
        lines.append('|'.join([
            action.resource_type,
            action.resource_name,
            action.alarm_name,
            format_threshold(action.threshold),
            action.metric_name,
        ]))
    lines.append(DELETE_MARKER)
    for action in plan.deletes:
        lines.append(action.alarm_name)
    lines.extend([
        SUMMARY_MARKER,
        f"CREATE_COUNT={len(plan.creates)}",
        f"DELETE_COUNT={len(plan.deletes)}",
    ])
    return '\n'.join(lines) + '\n'


def _parse_create_line(line: str, line_no: int) -> Optional[CreateAction]:
    fields = [f.strip() for f in line.split('|')]

    if len(fields) == 5:
        resource_type, resource_name, alarm_name, raw_threshold, metric_name = fields
    elif len(fields) == 3:
        resource_name, alarm_name, raw_threshold = fields
        resource_type = ResourceType.SQS.value
        metric_name = metric_for(ResourceType.SQS)
    else:
        logger.warning(f"Skipping malformed create line {line_no}: expected 3 or 5 fields, got {len(fields)}")
        return None

    if not all([resource_type, resource_name, alarm_name, raw_threshold, metric_name]):
        logger.warning(f"Skipping malformed create line {line_no}: empty field in '{line}'")
        return None

    try:
        threshold = float(raw_threshold)
    except ValueError:
        logger.warning(f"Skipping malformed create line {line_no}: invalid threshold '{raw_threshold}'")
        return None

    return CreateAction(
        resource_type=resource_type,
        resource_name=resource_name,
        alarm_name=alarm_name,
        threshold=threshold,
        metric_name=metric_name,
    )


def _parse_count(value: str, key: str) -> Optional[int]:
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring non-numeric {key} '{value}'")
        return None


def parse_plan(text: str) -> Plan:
    """Parse plan text.

    Raises:
        PlanFormatError: If the plan does not name a region
    """
    region = None
    suffix = ''
    creates: List[CreateAction] = []
    deletes: List[DeleteAction] = []
    expected_creates = None
    expected_deletes = None
    section = None

    for line_no, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if not line:
            continue

        if line == CREATE_MARKER:
            section = 'create'
        elif line == DELETE_MARKER:
            section = 'delete'
        elif line == SUMMARY_MARKER:
            section = 'summary'
        elif section is None or section == 'summary':
            key, sep, value = line.partition('=')
            if not sep:
                logger.warning(f"Skipping unrecognized plan line {line_no}: '{line}'")
            elif key == 'REGION':
                region = value
            elif key == 'ALARM_SUFFIX':
                suffix = value
            elif key == 'CREATE_COUNT':
                expected_creates = _parse_count(value, key)
            elif key == 'DELETE_COUNT':
                expected_deletes = _parse_count(value, key)
            else:
                logger.warning(f"Skipping unrecognized plan line {line_no}: '{line}'")
        elif section == 'create':
            action = _parse_create_line(line, line_no)
            if action is not None:
                creates.append(action)
        else:
            deletes.append(DeleteAction(alarm_name=line))

    if not region:
        raise PlanFormatError("Plan does not specify a REGION")

    if expected_creates is not None and expected_creates != len(creates):
        logger.warning(f"Plan summary lists {expected_creates} creates but {len(creates)} were parsed")
    if expected_deletes is not None and expected_deletes != len(deletes):
        logger.warning(f"Plan summary lists {expected_deletes} deletes but {len(deletes)} were parsed")

    return Plan(
        region=region,
        alarm_suffix=suffix,
        creates=tuple(creates),
        deletes=tuple(deletes),
    )


def save_plan(plan: Plan, path: Union[str, Path]) -> Path:
    """Write a plan atomically via a temp file.

    Returns:
        Path the plan was written to
    """
    path = Path(path)
    temp_file = path.with_name(path.name + '.tmp')
    try:
        with open(temp_file, 'w') as f:
            f.write(serialize_plan(plan))
        temp_file.replace(path)
    except OSError:
        if temp_file.exists():
            temp_file.unlink()
        raise

    logger.info(f"Plan saved to {path}")
    return path


def load_plan(path: Union[str, Path]) -> Plan:
    """Read and parse a plan file.

    Raises:
        PlanNotFoundError: If the file is missing or unreadable
        PlanFormatError: If the plan does not name a region
    """
    path = Path(path)
    if not path.is_file():
        raise PlanNotFoundError(
            f"Plan file not found: {path}",
            details="Make sure the analyze stage completed successfully.",
        )

    try:
        text = path.read_text()
    except (OSError, UnicodeDecodeError) as e:
        raise PlanNotFoundError(f"Failed to read plan file {path}: {e}", details=str(e))

    logger.info(f"Loading plan from {path}")
    return parse_plan(text)
