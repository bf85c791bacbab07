"""Configure test suite environment"""
import os
import sys

# Add the project root directory to the Python path
project_root = os.path.abspath(os.path.dirname(__file__))
sys.path.insert(0, project_root)

# Handlers log through powertools; keep the service name stable in tests
os.environ.setdefault("POWERTOOLS_SERVICE_NAME", "healthkey")
