"""
Setup file.
"""

from setuptools import find_packages, setup

KEYWORDS = "android xposed aosp build orchestration flashable zip"


if __name__ == "__main__":
    setup(
        name="xposed-build",
        version="0.9.0",
        description="Compiles and packages the Xposed framework for several platforms and SDKs",
        keywords=KEYWORDS,
        python_requires=">=3.9",
        package_dir={"": "src"},
        packages=find_packages(where="src"),
        install_requires=[
            "psutil",
        ],
        extras_require={
            "test": ["pytest"],
        },
        entry_points={
            "console_scripts": [
                "xposed-build=xposedbuild.cli:main",
            ],
        },
        include_package_data=True)
