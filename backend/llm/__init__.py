# LLM module
