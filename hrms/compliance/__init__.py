"""Saudi compliance integrations: SINAD wage protection and QIWA."""
