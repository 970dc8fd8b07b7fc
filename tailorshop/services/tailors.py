"""Tailor skill and shift data: spreadsheet import and availability lookups."""

from datetime import time

import pandas as pd
from flask import current_app
from werkzeug.exceptions import BadRequest, NotFound

from .. import db
from ..models import TailorAbility, TailorSchedule, TaskType, User
from . import assignment

ABILITY_COLUMNS = {"tailor_id", "task_type", "proficiency"}
SCHEDULE_COLUMNS = {"tailor_id", "day_of_week", "start_time", "end_time"}
DAY_NAMES = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


def read_table(file_storage) -> pd.DataFrame:
    """Load an uploaded CSV or Excel sheet with normalised column names."""

    name = (file_storage.filename or "").lower()
    try:
        if name.endswith((".xlsx", ".xls")):
            df = pd.read_excel(file_storage)
        else:
            df = pd.read_csv(file_storage)
    except (ValueError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise BadRequest(f"Could not read file: {e}") from None
    df.columns = [str(c).strip().lower() for c in df.columns]
    return df


def _require_columns(df, required):
    missing = required - set(df.columns)
    if missing:
        raise BadRequest(f"Missing columns: {', '.join(sorted(missing))}")


def _task_type_for(value):
    # blank cells come back as NaN
    if pd.isna(value) or not str(value).strip():
        return None
    # mixed id/name columns come back from pandas as strings
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value)
    if pd.api.types.is_number(value) and not pd.isna(value):
        tt = db.session.get(TaskType, int(value))
    else:
        label = str(value).strip()
        tt = db.session.execute(
            db.select(TaskType).where(db.func.lower(TaskType.name) == label.lower())
        ).scalar_one_or_none()
        if tt is None and label:
            tt = TaskType(name=label)
            db.session.add(tt)
            db.session.flush()
    return tt


def parse_day(value) -> int:
    if isinstance(value, str) and not value.strip().isdigit():
        day = value.strip().lower()
        for i, full in enumerate(DAY_NAMES):
            if full.startswith(day[:3]):
                return i
        raise ValueError(f"unknown day {value!r}")
    day = int(value)
    if not 0 <= day <= 6:
        raise ValueError(f"day_of_week out of range: {day}")
    return day


def parse_time(value) -> time:
    if isinstance(value, time):
        return value
    hours, minutes = str(value).strip().split(":")[:2]
    return time(int(hours), int(minutes))


def import_abilities(df: pd.DataFrame) -> dict:
    _require_columns(df, ABILITY_COLUMNS)
    added = updated = invalid = 0
    for row in df.to_dict(orient="records"):
        try:
            tailor = db.session.get(User, int(row["tailor_id"]))
            proficiency = int(row["proficiency"])
        except (TypeError, ValueError):
            invalid += 1
            continue
        task_type = _task_type_for(row["task_type"])
        if tailor is None or task_type is None:
            invalid += 1
            continue
        ability = db.session.execute(
            db.select(TailorAbility).where(
                TailorAbility.tailor_id == tailor.id,
                TailorAbility.task_type_id == task_type.id,
            )
        ).scalar_one_or_none()
        if ability is None:
            db.session.add(TailorAbility(tailor=tailor, task_type=task_type, proficiency=proficiency))
            added += 1
        else:
            ability.proficiency = proficiency
            updated += 1
    db.session.commit()
    if invalid:
        current_app.logger.warning("ability upload skipped %d invalid rows", invalid)
    return {"added": added, "updated": updated, "invalid": invalid}


def import_schedules(df: pd.DataFrame) -> dict:
    """Replace each listed tailor's shift on the listed day."""

    _require_columns(df, SCHEDULE_COLUMNS)
    added = invalid = 0
    cleared = set()
    for row in df.to_dict(orient="records"):
        try:
            tailor = db.session.get(User, int(row["tailor_id"]))
            day = parse_day(row["day_of_week"])
            start, end = parse_time(row["start_time"]), parse_time(row["end_time"])
        except (TypeError, ValueError):
            invalid += 1
            continue
        if tailor is None or end <= start:
            invalid += 1
            continue
        if (tailor.id, day) not in cleared:
            cleared.add((tailor.id, day))
            db.session.execute(
                db.delete(TailorSchedule).where(
                    TailorSchedule.tailor_id == tailor.id, TailorSchedule.day_of_week == day
                )
            )
        db.session.add(TailorSchedule(tailor_id=tailor.id, day_of_week=day, start_time=start, end_time=end))
        added += 1
    db.session.commit()
    if invalid:
        current_app.logger.warning("schedule upload skipped %d invalid rows", invalid)
    return {"added": added, "invalid": invalid}


def available_tailors(task_type_id, start=None, duration=None):
    task_type = db.session.get(TaskType, task_type_id)
    if task_type is None:
        raise NotFound("Task type not found")
    duration = duration or task_type.default_duration or current_app.config["ALTERATIONS_DEFAULT_DURATION"]
    available, excluded = assignment.find_candidates(task_type.id, duration, start or assignment.shop_now())
    return [c.as_dict() for c in available + excluded]
