# fallback for running from a source checkout that was never installed
version = "0.1.0"
