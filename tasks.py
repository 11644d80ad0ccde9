from invoke import task


@task
def lint(c):
    c.run("ruff check .")


@task
def format_check(c):
    c.run("ruff format --check .")


@task
def test(c):
    c.run("pytest")


@task
def serve(c, config="config.example.yaml"):
    c.run(f"dao-assessment serve --config {config}")


@task
def ci(c):
    lint(c)
    format_check(c)
    test(c)
