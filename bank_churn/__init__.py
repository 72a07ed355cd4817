"""
Bank customer churn: exploratory analysis and tree-based churn models.
"""
