import os
import sys
import tempfile

# Add project root to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

# Keep test logs out of the working tree
os.environ.setdefault('LOG_DIR', os.path.join(tempfile.gettempdir(), 'fitrank-test-logs'))
