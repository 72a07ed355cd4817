from pathlib import Path

import numpy as np

# Project root = folder containing this file's parent (bank_churn/) parent.
PROJECT_ROOT = Path(__file__).resolve().parents[1]

# Data
DATA_DIR = PROJECT_ROOT / "data"
RAW_DATA_DIR = DATA_DIR / "raw"

# Outputs
MODELS_DIR = PROJECT_ROOT / "models"
REPORTS_DIR = PROJECT_ROOT / "reports"
FIGURES_DIR = REPORTS_DIR / "figures"

# Dataset file name
DEFAULT_RAW_CSV = RAW_DATA_DIR / "Churn_Modelling.csv"

# Target label as it appears in the raw file, and its name after cleaning
RAW_TARGET_COL = "Exited"
TARGET_COL = "Churn"

# Row index column, dropped by the cleaner
INDEX_COL = "RowNumber"

# Identifier / free-text columns kept in the cleaned table but never modelled
ID_COLS = ["CustomerId", "Surname"]

# Categorical columns in this dataset
CATEGORICAL_COLS = ["Geography", "Gender"]

# 0/1 flags shown as No/Yes in the display view
BINARY_COLS = ["HasCrCard", "IsActiveMember"]

# Numeric columns (binary flags are fine as numeric for tree models)
NUMERIC_COLS = [
    "CreditScore",
    "Age",
    "Tenure",
    "Balance",
    "NumOfProducts",
    "HasCrCard",
    "IsActiveMember",
    "EstimatedSalary",
]

# Every column the raw CSV must carry
REQUIRED_COLS = [
    "RowNumber",
    "CustomerId",
    "Surname",
    "CreditScore",
    "Geography",
    "Gender",
    "Age",
    "Tenure",
    "Balance",
    "NumOfProducts",
    "HasCrCard",
    "IsActiveMember",
    "EstimatedSalary",
    "Exited",
]

# Raw columns that must parse as numbers
RAW_NUMERIC_COLS = ["RowNumber", "CustomerId"] + NUMERIC_COLS + [RAW_TARGET_COL]

# Model inputs, in a fixed order
FEATURE_COLS = [
    "CreditScore",
    "Geography",
    "Gender",
    "Age",
    "Tenure",
    "Balance",
    "NumOfProducts",
    "HasCrCard",
    "IsActiveMember",
    "EstimatedSalary",
]

# Closed label set for the churn target; position = numeric code
CHURN_LEVELS = ["No", "Yes"]
POSITIVE_LABEL = "Yes"

# Run defaults
RANDOM_STATE = 42
TRAIN_FRACTION = 0.8
CV_FOLDS = 10

# Model families and their tuned hyperparameter
DECISION_TREE = "decision_tree"
RANDOM_FOREST = "random_forest"
MODEL_FAMILIES = [DECISION_TREE, RANDOM_FOREST]

# Complexity parameter grid: 0.001, 0.006, ..., 0.046
CP_GRID = [round(float(v), 3) for v in np.arange(0.001, 0.0465, 0.005)]

# Candidate features per split: 1 .. number of model inputs
MTRY_GRID = list(range(1, len(FEATURE_COLS) + 1))

N_TREES = 500
