"""Rule engine that maps transaction descriptions to categories."""

import re
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ledgerly.core.exceptions import BusinessRuleError, NotFoundError
from ledgerly.core.logging import get_logger
from ledgerly.infrastructure.database.finance import Category, CategoryRule

logger = get_logger(__name__)

PATTERN_TYPES = ("contains", "startsWith", "regex")

LEARNED_RULE_PRIORITY = 10
LEARNED_PRIORITY_BOOST = 5
MAX_PATTERN_LENGTH = 50
MAX_PATTERN_WORDS = 4

# Noise stripped from descriptions before they become a rule pattern.
_NOISE_PATTERNS = [
    re.compile(r"\d{1,2}[/.]\d{1,2}[/.]\d{2,4}"),
    re.compile(r"\b\d{1,3}(?:[,.]\d{3})*(?:[,.]\d{2})?\b"),
    re.compile(r"\b\d+\b"),
    re.compile(r"בע[\"״]?מ"),
    re.compile(r"\bבע\s+מ\b"),
    re.compile(r"\bLTD\b", re.IGNORECASE),
    re.compile(r"\bINC\b", re.IGNORECASE),
    re.compile(r"\bCO\b", re.IGNORECASE),
    re.compile(r"סניף\s*"),
    re.compile(r"[*#_=;\"'()]+"),
]


def extract_pattern(description: str) -> str:
    """
    Reduce a bank description to a reusable rule pattern.

    Drops dates, standalone numbers, legal suffixes, branch words and
    punctuation, then keeps the first few meaningful words.

    Examples:
        >>> extract_pattern("SHUFERSAL LTD 12/03/2024 #1234")
        'SHUFERSAL'
    """
    cleaned = description
    for pattern in _NOISE_PATTERNS:
        cleaned = pattern.sub(" ", cleaned)
    cleaned = re.sub(r"\s+", " ", cleaned)
    cleaned = re.sub(r"^[\s\-:.,]+|[\s\-:.,]+$", "", cleaned)

    words = [w for w in cleaned.split(" ") if len(w) >= 2][:MAX_PATTERN_WORDS]
    pattern = " ".join(words)[:MAX_PATTERN_LENGTH].strip()
    if len(pattern) < 2:
        return description.strip()[:MAX_PATTERN_LENGTH]
    return pattern


def rule_matches(rule: CategoryRule, description: str) -> bool:
    """Check a single rule against a description (case-insensitive)."""
    if rule.pattern_type == "regex":
        try:
            return re.search(rule.pattern, description, re.IGNORECASE) is not None
        except re.error:
            return False

    text = description.upper()
    pattern = rule.pattern.upper()
    if rule.pattern_type == "startsWith":
        return text.startswith(pattern)
    return pattern in text


class RuleService:
    """Service for category rules: matching, learning and CRUD."""

    def __init__(self, db: Session):
        self.db = db

    def _active_rules(self, business_id: str) -> list[CategoryRule]:
        return list(
            self.db.execute(
                select(CategoryRule)
                .where(CategoryRule.business_id == business_id, CategoryRule.is_active.is_(True))
                .order_by(CategoryRule.priority.desc(), CategoryRule.created_at)
            ).scalars().all()
        )

    def suggest_category(self, business_id: str, description: str) -> Optional[str]:
        """Return the category id of the best matching rule, if any.

        The first pass checks every active rule by priority. The second pass
        compares the extracted pattern with `contains` rules in either
        direction so that small variations still match.
        """
        if not description or not description.strip():
            return None

        rules = self._active_rules(business_id)
        for rule in rules:
            if rule_matches(rule, description):
                return rule.category_id

        extracted = extract_pattern(description).upper()
        if len(extracted) < 2:
            return None
        for rule in rules:
            if rule.pattern_type != "contains":
                continue
            pattern = rule.pattern.upper()
            if pattern in extracted or extracted in pattern:
                return rule.category_id
        return None

    def learn_from_correction(self, business_id: str, description: str, category_id: str) -> CategoryRule:
        """Create or strengthen a rule after a user picked a category."""
        pattern = extract_pattern(description)

        rule = self.db.execute(
            select(CategoryRule).where(
                CategoryRule.business_id == business_id,
                func.lower(CategoryRule.pattern) == pattern.lower(),
            )
        ).scalars().first()

        if rule:
            rule.category_id = category_id
            rule.priority = rule.priority + LEARNED_PRIORITY_BOOST
            rule.is_active = True
        else:
            rule = CategoryRule(
                business_id=business_id,
                category_id=category_id,
                pattern=pattern,
                pattern_type="contains",
                priority=LEARNED_RULE_PRIORITY,
            )
            self.db.add(rule)

        self.db.flush()
        logger.info("Learned category rule", business_id=business_id, pattern=pattern, category_id=category_id)
        return rule

    def list_rules(self, business_id: str) -> list[CategoryRule]:
        return list(
            self.db.execute(
                select(CategoryRule)
                .where(CategoryRule.business_id == business_id)
                .order_by(CategoryRule.priority.desc(), CategoryRule.pattern)
            ).scalars().all()
        )

    def create_rule(self, business_id: str, data: dict[str, Any]) -> CategoryRule:
        pattern_type = data.get("pattern_type") or "contains"
        if pattern_type not in PATTERN_TYPES:
            raise BusinessRuleError(f"Invalid pattern type: {pattern_type}")
        if pattern_type == "regex":
            try:
                re.compile(data["pattern"])
            except re.error as exc:
                raise BusinessRuleError(f"Invalid regular expression: {exc}") from exc

        category = self.db.execute(
            select(Category).where(Category.id == data["category_id"], Category.business_id == business_id)
        ).scalar_one_or_none()
        if not category:
            raise NotFoundError("Category not found")

        rule = CategoryRule(
            business_id=business_id,
            category_id=category.id,
            pattern=data["pattern"],
            pattern_type=pattern_type,
            priority=data.get("priority") or 0,
            is_active=data.get("is_active", True),
        )
        self.db.add(rule)
        self.db.commit()
        self.db.refresh(rule)
        return rule

    def delete_rule(self, business_id: str, rule_id: str) -> None:
        rule = self.db.execute(
            select(CategoryRule).where(CategoryRule.id == rule_id, CategoryRule.business_id == business_id)
        ).scalar_one_or_none()
        if not rule:
            raise NotFoundError("Rule not found")
        self.db.delete(rule)
        self.db.commit()
