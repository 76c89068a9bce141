"""Starter rule set offered to new owners."""

from typing import List, Optional

from jobtracker.domain.models import InterestStatus, SuitabilityStatus

from .models import ConditionLogic, Rule, RuleCondition, RuleField, RuleOperator


def preset_rules(owner_id: Optional[str] = None) -> List[Rule]:
    """Return fresh copies of the preset rules, owned by ``owner_id``."""
    return [
        Rule(
            owner_id=owner_id,
            name="Ignore agency jobs (Noir)",
            field=RuleField.DESCRIPTION,
            operator=RuleOperator.CONTAINS,
            value="Noir",
            set_suitability=SuitabilityStatus.UNSUITABLE,
        ),
        Rule(
            owner_id=owner_id,
            name="Ignore security clearance required",
            field=RuleField.DESCRIPTION,
            operator=RuleOperator.CONTAINS,
            value="security clearance",
            set_suitability=SuitabilityStatus.UNSUITABLE,
        ),
        Rule(
            owner_id=owner_id,
            name="Mark remote jobs as interesting",
            field=RuleField.IS_REMOTE,
            operator=RuleOperator.IS_TRUE,
            set_interest=InterestStatus.INTERESTED,
        ),
        Rule(
            owner_id=owner_id,
            name="Ignore junior roles",
            field=RuleField.TITLE,
            operator=RuleOperator.CONTAINS,
            value="Junior",
            set_suitability=SuitabilityStatus.UNSUITABLE,
        ),
        Rule(
            owner_id=owner_id,
            name="Ignore graduate roles",
            field=RuleField.TITLE,
            operator=RuleOperator.CONTAINS,
            value="Graduate",
            set_suitability=SuitabilityStatus.UNSUITABLE,
        ),
        Rule(
            owner_id=owner_id,
            name="Ignore unpaid internships",
            field=RuleField.SALARY,
            operator=RuleOperator.CONTAINS,
            value="unpaid",
            set_suitability=SuitabilityStatus.UNSUITABLE,
        ),
        Rule(
            owner_id=owner_id,
            name="Highlight senior roles",
            field=RuleField.TITLE,
            operator=RuleOperator.REGEX,
            value=r"\b(Senior|Lead|Principal|Staff)\b",
            set_interest=InterestStatus.INTERESTED,
        ),
        Rule(
            owner_id=owner_id,
            name="Remote senior .NET roles",
            logic=ConditionLogic.AND,
            conditions=[
                RuleCondition(field=RuleField.IS_REMOTE, operator=RuleOperator.IS_TRUE),
                RuleCondition(field=RuleField.TITLE, operator=RuleOperator.CONTAINS, value="Senior"),
                RuleCondition(field=RuleField.ANY, operator=RuleOperator.REGEX, value=r"\.NET|C#|Blazor"),
            ],
            set_interest=InterestStatus.INTERESTED,
            set_suitability=SuitabilityStatus.POSSIBLE,
        ),
        Rule(
            owner_id=owner_id,
            name="Flag remote jobs from description",
            logic=ConditionLogic.OR,
            conditions=[
                RuleCondition(field=RuleField.DESCRIPTION, operator=RuleOperator.REGEX, value=r"\bremote\b"),
                RuleCondition(field=RuleField.DESCRIPTION, operator=RuleOperator.CONTAINS, value="work from home"),
            ],
            set_is_remote=True,
        ),
        Rule(
            owner_id=owner_id,
            name="Ignore short contracts or agencies",
            logic=ConditionLogic.OR,
            conditions=[
                RuleCondition(field=RuleField.DESCRIPTION, operator=RuleOperator.CONTAINS, value="3 month contract"),
                RuleCondition(field=RuleField.DESCRIPTION, operator=RuleOperator.CONTAINS, value="6 month contract"),
                RuleCondition(field=RuleField.COMPANY, operator=RuleOperator.CONTAINS, value="Recruitment"),
            ],
            set_suitability=SuitabilityStatus.UNSUITABLE,
        ),
    ]
