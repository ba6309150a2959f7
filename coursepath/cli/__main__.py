from coursepath.cli.main import main

main()
