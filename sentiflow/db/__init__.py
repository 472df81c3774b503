# sentiflow/db/__init__.py
from .base_class import Base
from .models import Feedback, AnalysisResult

# Importing the models registers them on Base.metadata for create_all
