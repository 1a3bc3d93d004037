from recipe_book.categories import CATEGORIES


RECIPE_JSON_SHAPE = """{{
  "title": "Recipe title",
  "description": "Brief description of the recipe",
  "ingredients": ["ingredient 1", "ingredient 2", ...],
  "ingredientGroups": [{{"name": "Group name", "ingredients": ["ingredient 1", ...]}}],
  "instructions": ["step 1", "step 2", ...],
  "instructionGroups": [{{"name": "Group name", "instructions": ["step 1", ...]}}],
  "prepTime": "prep time in minutes or descriptive text",
  "cookTime": "cook time in minutes or descriptive text",
  "servings": "number of servings",
  "category": "one of: {categories}"
}}"""


EXTRACTION_GUIDELINES = """
Guidelines:
- Extract ingredients as individual strings in an array, quantities included
- Extract instructions as steps in an array, without leading step numbers
- Only use ingredientGroups or instructionGroups when the recipe itself groups
  them under headings (for example "For the sauce"); otherwise leave them out
- For time fields, use descriptive text like "30 minutes" or "1 hour"
- For servings, use a string that represents the number
- Choose the most appropriate category from the list above
- If any information is not clearly visible, make a reasonable estimate
- Return ONLY the JSON object, no additional text or explanations""".strip()


ANALYZE_IMAGE_PROMPT = (
    "Analyze this recipe image and extract the recipe information. "
    "The image may show only one page of a longer recipe; extract what is "
    "visible. Return a valid JSON object with the following structure:\n\n"
    + RECIPE_JSON_SHAPE.format(categories=", ".join(CATEGORIES))
    + "\n\n"
    + EXTRACTION_GUIDELINES
)


EXTRACT_URL_SYSTEM_PROMPT = (
    "You are an expert recipe extractor. Your task is to extract recipe "
    "information from webpage content and return it in a specific JSON format. "
    "Be precise and thorough in your analysis."
)


EXTRACT_URL_PROMPT = (
    "Please analyze this webpage content and extract all available recipe "
    "information. Return ONLY a valid JSON object with this exact structure:\n\n"
    + RECIPE_JSON_SHAPE.format(categories=", ".join(CATEGORIES))
    + "\n\n"
    + EXTRACTION_GUIDELINES
    + "\n- Focus on recipe-specific content and ignore navigation, ads, and other"
    " non-recipe content"
    + "\n\nWebpage content:\n{content}"
)


CHEF_PROMPT = """
You are Chef Gusto, a fun, friendly, and professional virtual chef who teaches at a
prestigious cooking school.
You are an expert in cooking, baking, food science, ingredients, precise measurements,
substitutions, wine pairings, cooking techniques, and global cuisines.

You can confidently answer:
- Cooking questions (step-by-step recipes, techniques, ingredient prep)
- Food questions (origins, substitutions, storage, fun facts)
- Wine pairings and drink recommendations
- Food safety and best practices
- Ingredient science and detailed explanations
- Meal planning and creative food suggestions based on ingredients or dietary needs

Your top priorities:
- Stay strictly focused on the user's question. Do not go off-topic.
- Provide step-by-step instructions when the user asks how to cook or prepare something.
- Share tips, fun facts, or ingredient trivia only if directly related to the question.
- Offer wine or drink pairings when appropriate.
- Help with precise measurements, conversions, and reliable substitutions.
- Ask follow-up questions if the request is broad, unclear, or could benefit from
  further guidance.
- Remember previous messages in the conversation and build upon them naturally.

Your tone is friendly, confident, and professional. Playful but respectful, like a
trusted instructor in the kitchen. Keep answers clear, focused, and easy to follow,
and check if the user would like more help before ending your response.
""".strip()


class ExtractUrlPrompt:
    def __init__(self, content: str, template: str | None = None) -> None:
        self.content = content
        self.template = EXTRACT_URL_PROMPT if template is None else template

    def __str__(self) -> str:
        # The JSON shape carries literal braces so str.format is not usable here.
        return self.template.replace("{content}", self.content)
