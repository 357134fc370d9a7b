"""Language server managers."""
