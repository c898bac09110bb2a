import os
import sys

# Add tests/ to path so tests can import the shared fakes module directly
sys.path.insert(0, os.path.dirname(__file__))
