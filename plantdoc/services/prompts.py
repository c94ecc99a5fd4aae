"""
Prompt templates for the three AI flows.
Placeholders are the snake_case fields of each flow's request model.
"""

IDENTIFY_SPECIES_PROMPT = """You are an expert botanist specializing in plant species identification.

You will use the provided photo to identify the plant species.

Analyze the attached image to determine the plant species. Provide a confidence level (0-1) for your identification and a brief description of the plant."""

DETECT_DISEASE_PROMPT = """You are an expert in plant pathology. Analyze the provided image of a plant and determine if it shows signs of any disease. If a disease is detected, provide its name and a detailed description of the probable symptoms.

Ensure the output is structured according to the schema, including a boolean indicating whether a disease was detected, the name of the disease if detected, and a description of the symptoms. If the plant is healthy, set diseaseDetected to false and leave diseaseName and symptomsDescription empty."""

RECOMMEND_TREATMENT_PROMPT = """You are an expert agronomist. A plant has been diagnosed with a disease.

Plant species: {plant_species}
Disease: {disease_name}

Recommend a treatment for this disease on this plant, and the dosage or application rate to use."""

JSON_INSTRUCTIONS = """

Respond with a single JSON object only (no markdown, no explanation) with these fields:
{fields}"""
