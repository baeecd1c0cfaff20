"""
Model gateway adapters: the gateway contract, prompt templates and the Gemini client.
"""
