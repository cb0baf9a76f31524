"""
Visa Eligibility Evaluation Service

Scores visa applications with a category-weighted rule engine, document
requirement validation, application-type specific evaluators and a case
complexity analyzer, and merges them into one decision.
"""

__version__ = "1.0.0"
__author__ = "Visa Evaluation Team"
__description__ = "Rule-based visa eligibility and case complexity evaluation"
