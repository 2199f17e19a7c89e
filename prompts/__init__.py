# Prompts module initialization

# Quiz Generation Prompts
from .quiz_prompts import (
    QUIZ_SYSTEM_INSTRUCTION,
    SECTION_SYSTEM_INSTRUCTION,
    FINAL_OUTPUT_INSTRUCTION,
    DEFAULT_TEMPLATE_INSTRUCTIONS,
    POPULAR_TEMPLATES,
    apply_template_placeholders,
    build_output_format_block,
    build_default_quiz_prompt,
    build_custom_quiz_prompt,
    build_section_quiz_prompt
)

__all__ = [
    'QUIZ_SYSTEM_INSTRUCTION',
    'SECTION_SYSTEM_INSTRUCTION',
    'FINAL_OUTPUT_INSTRUCTION',
    'DEFAULT_TEMPLATE_INSTRUCTIONS',
    'POPULAR_TEMPLATES',
    'apply_template_placeholders',
    'build_output_format_block',
    'build_default_quiz_prompt',
    'build_custom_quiz_prompt',
    'build_section_quiz_prompt'
]
