"""Version-aware provisioning of the OmniSharp server binary."""
