import importlib.util
import os
import platform
import shutil

from loguru import logger

_bioformats_silenced = False


def find_java_home():
    """Dynamically find the Java installation used by bioio-bioformats."""
    java_home = os.environ.get("JAVA_HOME")
    if java_home and os.path.exists(java_home):
        return java_home

    java_exe = shutil.which("java")
    if java_exe:
        # Typically .../jdk-XX/bin/java[.exe]
        java_bin = os.path.dirname(os.path.realpath(java_exe))
        java_home = os.path.dirname(java_bin)
        java_binary = "java.exe" if platform.system() == "Windows" else "java"
        if os.path.exists(os.path.join(java_home, "bin", java_binary)):
            return java_home

    if platform.system() == "Windows":
        for base_path in (
            r"C:\Program Files\Java",
            r"C:\Program Files (x86)\Java",
            r"C:\ProgramData\Oracle\Java",
        ):
            if not os.path.exists(base_path):
                continue
            for folder in os.listdir(base_path):
                java_path = os.path.join(base_path, folder)
                if os.path.exists(os.path.join(java_path, "bin", "java.exe")):
                    return java_path

    return None


def silence_bioformats_logging():
    """Turn off Java logging of the loci package, once per process.

    Does nothing unless both bioio-bioformats and scyjava are installed, so the
    JVM is only started when the Bio-Formats reader can actually be used.
    """
    global _bioformats_silenced
    if _bioformats_silenced:
        return
    _bioformats_silenced = True

    if importlib.util.find_spec("bioio_bioformats") is None:
        return
    if importlib.util.find_spec("scyjava") is None:
        return

    try:
        import jpype
        import scyjava

        scyjava.start_jvm()
        loci = jpype.JPackage("loci")
        loci.common.DebugTools.setRootLevel("OFF")
    except Exception as e:
        logger.debug(f"Could not silence Bio-Formats logging: {e}")
