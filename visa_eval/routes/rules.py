"""
Administrative API routes for the rule registry
"""
from typing import Any, Dict, Optional
from fastapi import APIRouter, HTTPException, Query

from ..models.rules import Rule
from ..services.evaluation_service import evaluation_service

router = APIRouter(prefix="/rules", tags=["rules"])


def _rule_summary(rule: Rule) -> Dict[str, Any]:
    return {
        "id": rule.id,
        "category": rule.category,
        "priority": rule.priority,
        "weight": rule.weight,
        "enabled": rule.enabled,
        "description": rule.description,
        "visa_types": list(rule.visa_types)
    }


@router.get("/statistics")
async def get_statistics():
    """
    Get registry counts and rule usage statistics
    """
    try:
        return evaluation_service.rule_engine.get_statistics()

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to retrieve statistics: {str(e)}")


@router.post("/{rule_id}/toggle")
async def toggle_rule(
    rule_id: str,
    enabled: Optional[bool] = Query(None, description="Target state; flips the rule when omitted")
):
    """
    Enable or disable a rule
    """
    try:
        rule = evaluation_service.rule_engine.toggle_rule(rule_id, enabled)
        if rule is None:
            raise HTTPException(status_code=404, detail=f"Rule not found: {rule_id}")

        return _rule_summary(rule)

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to toggle rule: {str(e)}")


@router.delete("/{rule_id}")
async def delete_rule(rule_id: str):
    """
    Remove a rule from the registry
    """
    try:
        rule = evaluation_service.rule_engine.remove_rule(rule_id)
        if rule is None:
            raise HTTPException(status_code=404, detail=f"Rule not found: {rule_id}")

        return {"message": f"Rule {rule_id} removed", "rule": _rule_summary(rule)}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to remove rule: {str(e)}")
