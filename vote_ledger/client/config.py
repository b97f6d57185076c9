"""Configuration for the vote ledger client."""
import os
from dotenv import load_dotenv

load_dotenv()

# API Configuration
BACKEND_URL = os.getenv('BACKEND_URL', 'https://votingsystem-tqdk.onrender.com')

# Seconds before a request to the API is abandoned
REQUEST_TIMEOUT = float(os.getenv('REQUEST_TIMEOUT', '10'))
