from concurrentResolver.resolver.cli import run

if __name__ == "__main__":
    run()
