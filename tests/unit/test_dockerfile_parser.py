from podbox.PARSERS.dockerfile_parser import DockerfileParser

def test_parse_from_string():
    content = """
    FROM python:3.11-slim
    # system helpers
    RUN apt-get update && apt-get install -y \\
        curl \\
        procps
    WORKDIR /app
    CMD ["./start_container_services.sh"]
    """
    parser = DockerfileParser()
    ast = parser.parse_from_string(content)

    assert [i.instruction for i in ast.instructions] == ["FROM", "RUN", "WORKDIR", "CMD"]

    # Continuations are joined onto one line
    run_inst = ast.instructions[1]
    assert run_inst.raw == "RUN apt-get update && apt-get install -y curl procps"

    # Exec form
    assert ast.instructions[-1].arguments == ["./start_container_services.sh"]

def test_invokes_any_only_matches_run_steps():
    ast = DockerfileParser().parse_from_string(
        "FROM apt-get\nRUN pip install apt-getter\nRUN set -e;apt-get install -y curl\n"
    )
    assert not ast.instructions[0].invokes_any(["apt-get"])
    assert not ast.instructions[1].invokes_any(["apt-get"])
    assert ast.instructions[2].invokes_any(["apt-get"])

def test_render_one_instruction_per_line():
    ast = DockerfileParser().parse_from_string("from alpine\nRUN   echo   hi\n")
    assert ast.render() == "FROM alpine\nRUN echo   hi\n"

def test_quoted_arguments_keep_their_whitespace():
    content = 'RUN echo "a  b" \\\n    && printf "%s\\t%s" x y\n'
    ast = DockerfileParser().parse_from_string(content)
    assert ast.render() == 'RUN echo "a  b" && printf "%s\\t%s" x y\n'

def test_parse_file(tmp_path):
    path = tmp_path / "Dockerfile"
    path.write_text("FROM python:3.11-slim\nEXPOSE 6247 8501\n")
    ast = DockerfileParser().parse(str(path))
    assert ast.instructions[1].arguments == ["6247 8501"]
