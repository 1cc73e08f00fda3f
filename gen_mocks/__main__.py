from gen_mocks.cli import main

main()
