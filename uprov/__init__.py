"""
user-provisioner - Provisioning massivo utenti Linux da tabella CSV
"""
__version__ = "1.0.0"
__description__ = "Provisioning e deprovisioning utenti Linux da CSV (gruppo per ruolo, password scaduta)"
