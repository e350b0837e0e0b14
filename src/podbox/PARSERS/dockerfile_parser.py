"""
Parsers for Containerfiles, extracting instructions and arguments.
"""
import json
import re
from ..MODELS.dockerfile_ast import Instruction, DockerfileAST


class DockerfileParser:
    """
    Parser for Containerfile instructions.
    """
    def parse(self, dockerfile_path: str) -> DockerfileAST:
        """
        Parses a Containerfile from a file path.

        Args:
            dockerfile_path (str): Path to the Containerfile.

        Returns:
            DockerfileAST: The parsed instructions.
        """
        with open(dockerfile_path, 'r', encoding='utf-8') as f:
            content = f.read()
        return self.parse_from_string(content)

    def parse_from_string(self, content: str) -> DockerfileAST:
        """
        Parses a Containerfile from a string content.

        Comments are dropped and line continuations are joined, so the ``raw``
        text of every instruction fits on a single line. Argument text is
        otherwise kept as written.

        Args:
            content (str): Content of the Containerfile.

        Returns:
            DockerfileAST: The parsed instructions.
        """
        instructions = []

        content = re.sub(r'^\s*#.*$', '', content, flags=re.MULTILINE)
        content = re.sub(r'[ \t]*\\[ \t]*\n[ \t]*', ' ', content)

        pattern = re.compile(r'^\s*([A-Za-z]+)\s+(.*)$', re.MULTILINE)

        for match in pattern.finditer(content):
            inst = match.group(1).upper()
            args_str = match.group(2).strip()

            if args_str.startswith('[') and args_str.endswith(']'):
                try:
                    args = json.loads(args_str)
                except json.JSONDecodeError:
                    args = [args_str]
            else:
                args = [args_str]

            instructions.append(Instruction(
                instruction=inst,
                arguments=args,
                raw=f"{inst} {args_str}"
            ))

        return DockerfileAST(instructions=instructions)
