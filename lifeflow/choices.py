# lifeflow/choices.py
"""
Enumerations shared by several apps
"""

BLOOD_TYPE_CHOICES = [
    ('A+', 'A+'), ('A-', 'A-'),
    ('B+', 'B+'), ('B-', 'B-'),
    ('AB+', 'AB+'), ('AB-', 'AB-'),
    ('O+', 'O+'), ('O-', 'O-'),
]

BLOOD_TYPES = [code for code, _ in BLOOD_TYPE_CHOICES]

COMPONENT_CHOICES = [
    ('whole_blood', 'Whole Blood'),
    ('plasma', 'Plasma'),
    ('platelets', 'Platelets'),
    ('red_cells', 'Red Cells'),
    ('cryoprecipitate', 'Cryoprecipitate'),
]

TEST_RESULT_CHOICES = [
    ('negative', 'Negative'),
    ('positive', 'Positive'),
    ('pending', 'Pending'),
    ('not_tested', 'Not Tested'),
]
