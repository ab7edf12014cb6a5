"""DactiloLab: forensic fingerprint-analysis quiz generated on demand."""
