from __future__ import annotations
from typing import Dict, List, Optional

from pydantic import BaseModel


class Tag(BaseModel):
	id: str
	label: str
	icon: str
	description: str
	# Hint shown to players on how to prompt for this kind of problem
	prompt_tips: str
	color: str


TAG_DEFINITIONS: Dict[str, Tag] = {
	"calculation": Tag(
		id="calculation",
		label="Calculation",
		icon="🔢",
		description="Problems that need numeric calculation or arithmetic.",
		prompt_tips="Ask the model to work through the calculation step by step.",
		color="#3B82F6",
	),
	"character_counting": Tag(
		id="character_counting",
		label="Character counting",
		icon="📊",
		description="Count the length of a string or how often a character appears.",
		prompt_tips="Have the model count one character at a time and double-check the total.",
		color="#10B981",
	),
	"text_analysis": Tag(
		id="text_analysis",
		label="Text analysis",
		icon="📝",
		description="Analyse the structure or content of a passage.",
		prompt_tips="Tell the model which aspects of the text to look at and to read carefully.",
		color="#8B5CF6",
	),
	"text_problem": Tag(
		id="text_problem",
		label="Word problem",
		icon="📖",
		description="Read the information out of a text and solve the problem.",
		prompt_tips="Ask the model to list the given conditions before solving.",
		color="#F59E0B",
	),
	"pattern_recognition": Tag(
		id="pattern_recognition",
		label="Pattern recognition",
		icon="🔍",
		description="Find the rule or pattern behind a sequence.",
		prompt_tips="Encourage observing several examples and testing a hypothesis.",
		color="#EC4899",
	),
	"logic_puzzle": Tag(
		id="logic_puzzle",
		label="Logic puzzle",
		icon="🧩",
		description="Puzzles that need logical reasoning or deduction.",
		prompt_tips="Ask for step-by-step reasoning and a check for contradictions.",
		color="#EF4444",
	),
	"general_knowledge": Tag(
		id="general_knowledge",
		label="General knowledge",
		icon="🌍",
		description="Questions about general knowledge or common sense.",
		prompt_tips="Ask the model to justify its answer.",
		color="#06B6D4",
	),
	"estimation": Tag(
		id="estimation",
		label="Estimation",
		icon="📐",
		description="Estimate an approximate value.",
		prompt_tips="Ask the model to state its assumptions and estimate in stages.",
		color="#84CC16",
	),
}


def get_tag(tag_id: str) -> Optional[Tag]:
	return TAG_DEFINITIONS.get(tag_id)


def all_tags() -> List[Tag]:
	return list(TAG_DEFINITIONS.values())
