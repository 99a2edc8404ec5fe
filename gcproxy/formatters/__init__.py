"""Translation between the OpenAI and Gemini wire formats."""
