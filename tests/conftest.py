"""Shared test fixtures for provider network tests."""

import pandas as pd
import pytest

COLUMNS = ["patient_id", "npi", "provider_hrr", "provider_specialty", "pc_specialist_flag"]


@pytest.fixture
def triangle_records():
    """Providers A, B, C over patients P1-P3, with a repeated A/P1 encounter."""
    rows = [
        ("P1", "A", "10", "Family Medicine", "0"),
        ("P1", "A", "10", "Family Medicine", "0"),
        ("P2", "A", "10", "Family Medicine", "0"),
        ("P2", "B", "10", "Medical Oncology", "0"),
        ("P3", "B", "10", "Medical Oncology", "0"),
        ("P1", "C", "10", "Hospice and Palliative Care", "1"),
        ("P2", "C", "10", "Hospice and Palliative Care", "1"),
        ("P3", "C", "10", "Hospice and Palliative Care", "1"),
    ]
    return pd.DataFrame(rows, columns=COLUMNS)


@pytest.fixture
def region_records():
    """
    Three HRRs:
      10 - PC specialist, oncologist and a PC-providing PCP sharing patients;
           a cardiologist (Non-PC / Others) and a hospitalist connected only
           to the cardiologist
      20 - a dermatologist (Non-PC / Others) and a urologist connected only
           to each other, so the region empties out
      30 - a radiation oncologist and a surgeon sharing one patient
    Oncologist 1000000002 also shares a patient with HRR 30.
    1000000004 has a later row with another HRR; the first row wins.
    """
    rows = [
        ("PT01", "1000000001", "10", "Hospice and Palliative Care", "1"),
        ("PT01", "1000000001", "10", "Hospice and Palliative Care", "1"),
        ("PT01", "1000000002", "10", "Medical Oncology", "0"),
        ("PT01", "1000000004", "10", "Family Medicine", "1"),
        ("PT02", "1000000001", "10", "Hospice and Palliative Care", "1"),
        ("PT02", "1000000002", "10", "Medical Oncology", "0"),
        ("PT03", "1000000003", "10", "Cardiology", "0"),
        ("PT03", "1000000005", "10", "Hospitalist", "0"),
        ("PT04", "1000000002", "10", "Medical Oncology", "0"),
        ("PT04", "3000000001", "30", "Radiation Oncology", "0"),
        ("PT05", "2000000001", "20", "Dermatology", "0"),
        ("PT05", "2000000002", "20", "Urology", "0"),
        ("PT06", "3000000001", "30", "Radiation Oncology", "0"),
        ("PT06", "3000000002", "30", "General Surgery", None),
        ("PT07", "1000000004", "99", "Family Medicine", "1"),
    ]
    return pd.DataFrame(rows, columns=COLUMNS)
