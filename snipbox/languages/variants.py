"""
Declarative table of supported language variants.

Dockerfile templates are ``str.format`` templates: each declared option key is
a placeholder and literal braces are doubled. Every image runs the submitted
file at ``/tmp/code`` as its default command.
"""

from .base import Language, LanguageVariant, OptionSpec

SCIENTIFIC_PACKAGES = ("numpy", "scipy", "pandas", "sympy", "matplotlib")

_PYTHON_BUNDLES = {
    "scientific": (
        "ENV MPLCONFIGDIR=/tmp/.matplotlib\n"
        f"RUN pip install --no-cache-dir {' '.join(SCIENTIFIC_PACKAGES)}\n"
    ),
    "none": "",
}

BASH = LanguageVariant(
    language=Language.BASH,
    display_name="Bash",
    codes=("bash", "sh", "zsh"),
    dockerfile_template="""\
FROM bash:5
WORKDIR /tmp
CMD ["bash", "/tmp/code"]
""",
    help_text="Runs the snippet with bash 5.",
    sample="echo 'Hello, World!'",
)

C = LanguageVariant(
    language=Language.C,
    display_name="C",
    codes=("c", "h"),
    options=(OptionSpec("std", ("c17", "c11", "c99", "c89")),),
    dockerfile_template="""\
FROM gcc:13
WORKDIR /tmp
CMD ["sh", "-c", "gcc -Wall -Wextra -std={std} -x c /tmp/code -o /tmp/exe && /tmp/exe"]
""",
    help_text="Compiles the snippet with gcc and runs it. Options: std.",
    sample="""\
#include <stdio.h>
int main(void) {
    printf("Hello, World!\\n");
    return 0;
}
""",
)

CPP = LanguageVariant(
    language=Language.CPP,
    display_name="C++",
    codes=("cpp", "hpp", "cc", "hh", "c++", "h++", "cxx", "hxx"),
    options=(OptionSpec("std", ("c++17", "c++20", "c++14", "c++11")),),
    dockerfile_template="""\
FROM gcc:13
WORKDIR /tmp
CMD ["sh", "-c", "g++ -Wall -Wextra -std={std} -x c++ /tmp/code -o /tmp/exe && /tmp/exe"]
""",
    help_text="Compiles the snippet with g++ and runs it. Options: std.",
    sample="""\
#include <iostream>
int main() {
    std::cout << "Hello, World!" << std::endl;
    return 0;
}
""",
)

# Fortran picks fixed or free form from the file extension; the code file has
# none so free form is forced.
FORTRAN = LanguageVariant(
    language=Language.FORTRAN,
    display_name="Fortran",
    codes=("fortran", "f90", "f95"),
    dockerfile_template="""\
FROM gcc:13
WORKDIR /tmp
CMD ["sh", "-c", "gfortran -Wall -Wextra -x f95 -ffree-form /tmp/code -o /tmp/exe && /tmp/exe"]
""",
    help_text="Compiles the snippet with gfortran (free form) and runs it.",
    sample="""\
program hello
    write(*,'(a)') "Hello, World!"
end program hello
""",
)

GO = LanguageVariant(
    language=Language.GO,
    display_name="Go",
    codes=("go", "golang"),
    options=(OptionSpec("version", ("1.22", "1.21")),),
    dockerfile_template="""\
FROM golang:{version}-alpine
ENV GOCACHE=/tmp/.cache/go GOPATH=/tmp/go HOME=/tmp
WORKDIR /tmp
CMD ["sh", "-c", "ln -s /tmp/code /tmp/code.go && go run /tmp/code.go"]
""",
    help_text="Runs the snippet with `go run`. Options: version.",
    sample="""\
package main

import "fmt"

func main() {
    fmt.Println("Hello, World!")
}
""",
)

# javac requires the file name to match the public class, so the class name is
# read from the source when the container starts.
JAVA = LanguageVariant(
    language=Language.JAVA,
    display_name="Java",
    codes=("java", "jsp"),
    options=(OptionSpec("version", ("21", "17", "11")),),
    dockerfile_template="""\
FROM eclipse-temurin:{version}-jdk
WORKDIR /tmp
CMD class=$(sed -nE 's/.*public[[:space:]]+class[[:space:]]+([A-Za-z_][A-Za-z0-9_]*).*/\\1/p' /tmp/code | head -n 1); \
class=${{class:-Main}}; \
ln -sf /tmp/code "/tmp/$class.java" && javac -d /tmp "/tmp/$class.java" && java -cp /tmp "$class"
""",
    help_text="Compiles the snippet with javac and runs its public class. Options: version.",
    sample="""\
public class Hello {
    public static void main(String[] args) {
        System.out.println("Hello, World!");
    }
}
""",
)

JAVASCRIPT = LanguageVariant(
    language=Language.JAVASCRIPT,
    display_name="JavaScript",
    codes=("javascript", "js", "jsx"),
    options=(OptionSpec("version", ("20", "18", "22")),),
    dockerfile_template="""\
FROM node:{version}-alpine
WORKDIR /tmp
CMD ["node", "/tmp/code"]
""",
    help_text="Runs the snippet with node. Options: version.",
    sample="console.log('Hello, World!');",
)

PERL = LanguageVariant(
    language=Language.PERL,
    display_name="Perl",
    codes=("perl", "pl", "pm"),
    dockerfile_template="""\
FROM perl:5-slim
WORKDIR /tmp
CMD ["perl", "/tmp/code"]
""",
    help_text="Runs the snippet with perl 5.",
    sample="print \"Hello, World!\\n\";",
)

# Unbuffered output keeps the interleaving with subprocess output intact.
PYTHON = LanguageVariant(
    language=Language.PYTHON,
    display_name="Python",
    codes=("python", "py", "gyp"),
    options=(
        OptionSpec("version", ("3.12", "3.11", "3.10", "3.9", "3.8")),
        OptionSpec("bundle", ("scientific", "none"), fragments=_PYTHON_BUNDLES),
    ),
    dockerfile_template="""\
FROM python:{version}-slim
ENV PYTHONUNBUFFERED=1 PYTHONDONTWRITEBYTECODE=1
{bundle}WORKDIR /tmp
CMD ["python", "/tmp/code"]
""",
    help_text=(
        "Runs the snippet with CPython. Options: version, bundle "
        f"(scientific installs {', '.join(SCIENTIFIC_PACKAGES)})."
    ),
    sample="print('Hello, World!')",
)

RUBY = LanguageVariant(
    language=Language.RUBY,
    display_name="Ruby",
    codes=("ruby", "rb", "gemspec", "podspec", "thor", "irb"),
    options=(OptionSpec("version", ("3.3", "3.2")),),
    dockerfile_template="""\
FROM ruby:{version}-alpine
WORKDIR /tmp
CMD ["ruby", "/tmp/code"]
""",
    help_text="Runs the snippet with ruby. Options: version.",
    sample="puts 'Hello, World!'",
)

RUST = LanguageVariant(
    language=Language.RUST,
    display_name="Rust",
    codes=("rust", "rs"),
    options=(OptionSpec("version", ("1.79", "1.75")),),
    dockerfile_template="""\
FROM rust:{version}-alpine
WORKDIR /tmp
CMD ["sh", "-c", "rustc -o /tmp/exe /tmp/code && /tmp/exe"]
""",
    help_text="Compiles the snippet with rustc and runs it. Options: version.",
    sample="""\
fn main() {
    println!("Hello, World!");
}
""",
)

VARIANTS: tuple[LanguageVariant, ...] = (
    BASH,
    C,
    CPP,
    FORTRAN,
    GO,
    JAVA,
    JAVASCRIPT,
    PERL,
    PYTHON,
    RUBY,
    RUST,
)
